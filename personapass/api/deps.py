"""Request-scoped accessors for app-owned state."""

from __future__ import annotations

from fastapi import Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from personapass.core.service import IdentityService


def get_service(request: Request) -> IdentityService:
    return request.app.state.service


class CamelRequest(BaseModel):
    """Request body whose fields arrive in camelCase (``firstName``, ``totpCode``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
