"""PersonaChain routes: validator status, balance and transaction stubs."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from personapass.api.deps import get_service
from personapass.core.service import IdentityService
from personapass.logging_config import redact

router = APIRouter(prefix="/api/blockchain", tags=["Blockchain"])
logger = logging.getLogger("personapass.api.blockchain")


class TransactionRequest(BaseModel):
    sender: str | None = Field(default=None, alias="from")
    recipient: str | None = Field(default=None, alias="to")
    amount: str | int | float | None = None
    data: Any = None
    signature: str | None = None

    model_config = ConfigDict(populate_by_name=True)


@router.get("/status", summary="Probe the PersonaChain validator")
async def blockchain_status(service: IdentityService = Depends(get_service)):
    return {"success": True, "blockchain": await service.blockchain_status()}


@router.get("/balance/{address}", summary="Account balance (stub)")
async def balance(address: str, service: IdentityService = Depends(get_service)):
    logger.info("Balance request for %s", redact(address, 8))
    return {
        "success": True,
        "data": service.chain.get_balance(address),
        "message": "Balance retrieved (mock data - will integrate with PersonaChain Cosmos SDK)",
    }


@router.post("/transaction", summary="Submit a transaction (stub)")
async def transaction(req: TransactionRequest, service: IdentityService = Depends(get_service)):
    amount = None if req.amount is None else str(req.amount)
    data = service.chain.submit_transaction(
        req.sender, req.recipient, req.signature, amount=amount, data=req.data
    )
    logger.info(
        "Transaction request %s -> %s amount %s",
        redact(req.sender, 8),
        redact(req.recipient, 8),
        data["amount"],
    )
    return {
        "success": True,
        "data": data,
        "message": "Transaction submitted (mock data - will integrate with PersonaChain Cosmos SDK)",
    }
