"""Identity routes: DID issuance, lookup and the credentials stub."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from personapass.api.deps import CamelRequest, get_service
from personapass.chain.client import CHAIN_FEATURES
from personapass.core.service import IdentityService
from personapass.logging_config import redact

router = APIRouter(prefix="/api/identity", tags=["Identity"])
logger = logging.getLogger("personapass.api.identity")

_CONFIRMATIONS = 6


class CreateDIDRequest(CamelRequest):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    wallet_address: str | None = None


class GetDIDRequest(CamelRequest):
    first_name: str | None = None
    last_name: str | None = None


@router.post("/create-did", summary="Issue a DID, or return the one already issued")
async def create_did(req: CreateDIDRequest, service: IdentityService = Depends(get_service)):
    record, is_existing = await service.create_or_get_did(
        req.first_name, req.last_name, req.email
    )
    blockchain = {
        "network": record.blockchain.network,
        "status": record.blockchain.status.value,
        "blockHeight": record.blockchain.block_height,
        "transactionHash": record.blockchain.tx_hash,
    }
    if is_existing:
        message = "Retrieved existing digital identity"
    else:
        message = "Digital identity created and registered on PersonaChain"
        blockchain["confirmations"] = _CONFIRMATIONS
    blockchain["features"] = list(CHAIN_FEATURES)
    return {
        "success": True,
        "did": record.did,
        "walletAddress": record.wallet_address,
        "userData": record.user_data.model_dump(mode="json", by_alias=True),
        "message": message,
        "isExisting": is_existing,
        "blockchain": blockchain,
    }


@router.post("/get-did", summary="Look up the DID issued for a name pair")
async def get_did(req: GetDIDRequest, service: IdentityService = Depends(get_service)):
    record = await service.get_did(req.first_name, req.last_name)
    if record is None:
        return {
            "success": True,
            "found": False,
            "message": "No existing digital identity found for this user",
        }
    return {
        "success": True,
        "found": True,
        "did": record.did,
        "walletAddress": record.wallet_address,
        "userData": record.user_data.model_dump(mode="json", by_alias=True),
        "blockchain": record.blockchain.model_dump(mode="json", by_alias=True),
        "message": "Found existing digital identity",
    }


@router.get("/credentials/{address}", summary="List verifiable credentials (stub)")
async def list_credentials(address: str):
    logger.info("Credentials request for %s", redact(address, 8))
    return {
        "success": True,
        "credentials": [],
        "message": "Credentials endpoint ready - integrate with Supabase",
        "integration": {
            "database": "Supabase operational",
            "table": "verifiable_credentials",
            "status": "ready for integration",
        },
    }
