"""Repository protocols for PersonaPass state.

The in-memory implementations in ``storage.memory`` satisfy these; a
persistent backend only has to provide the same coroutines.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from personapass.core.models import AccountSecret, DIDRecord


@runtime_checkable
class SecretRepository(Protocol):
    """TOTP secrets keyed by account identifier."""

    async def put(self, record: AccountSecret) -> None: ...

    async def get(self, account_identifier: str) -> AccountSecret | None: ...

    async def count(self) -> int: ...


@runtime_checkable
class DIDRepository(Protocol):
    """Issued DIDs keyed by name key."""

    def lock(self, name_key: str) -> asyncio.Lock:
        """Return the lock serializing creation for ``name_key``."""
        ...

    async def put(self, record: DIDRecord) -> None: ...

    async def get(self, name_key: str) -> DIDRecord | None: ...

    async def count(self) -> int: ...
