"""Auth routes: login stub, TOTP setup and account creation."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from personapass.api.deps import CamelRequest, get_service
from personapass.core.service import IdentityService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class CredentialsRequest(CamelRequest):
    email: str | None = None
    password: str | None = None
    totp_code: str | int | None = None


class TotpSetupRequest(CamelRequest):
    email: str | None = None


@router.post("/login", summary="Login (integration placeholder)")
async def login(req: CredentialsRequest, service: IdentityService = Depends(get_service)):
    integration = service.login(req.email, req.password, req.totp_code)
    return {
        "success": True,
        "message": "Login endpoint ready - integrate with Lambda function",
        "requiresIntegration": integration,
    }


@router.post("/totp-setup", summary="Generate a TOTP secret for an email")
async def totp_setup(req: TotpSetupRequest, service: IdentityService = Depends(get_service)):
    data = await service.setup_totp(req.email)
    return {"success": True, "data": data, "message": "TOTP setup successful"}


@router.post("/create-account", summary="Create an account after TOTP verification")
async def create_account(
    req: CredentialsRequest, service: IdentityService = Depends(get_service)
):
    account = await service.create_account(req.email, req.password, req.totp_code)
    return {
        "success": True,
        "data": account.model_dump(mode="json", by_alias=True),
        "message": "Account created successfully",
    }
