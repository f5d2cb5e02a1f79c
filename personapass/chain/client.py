"""PersonaChain access.

Only the status probe talks to the network: a GET against the validator's
Tendermint RPC ``/status`` with a short timeout. Balances and transactions
are stubs that keep the Cosmos SDK response shapes until the chain is wired in.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from personapass.core.models import epoch_ms, utc_iso
from personapass.crypto.did import synthetic_tx_hash
from personapass.exceptions import UpstreamUnavailableError, ValidationError

logger = logging.getLogger("personapass.chain")

DENOM = "PERSONA"
CHAIN_FEATURES = ("did_module", "credential_module", "zk_proof_module")


class ChainClient:
    """Thin client for the PersonaChain validator endpoints."""

    def __init__(
        self,
        rpc_url: str,
        api_url: str,
        chain_id: str,
        timeout: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.chain_id = chain_id
        self.timeout = timeout
        self._transport = transport

    async def probe_status(self) -> dict[str, Any]:
        """GET ``{rpc_url}/status``.

        Raises:
            UpstreamUnavailableError: the validator did not answer within the
                timeout, or answered with a non-2xx status.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(f"{self.rpc_url}/status")
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(
                f"PersonaChain RPC unreachable: {exc.__class__.__name__}"
            ) from exc
        if not response.is_success:
            raise UpstreamUnavailableError(
                f"PersonaChain RPC returned HTTP {response.status_code}"
            )
        try:
            return response.json()
        except ValueError:
            return {}

    def get_balance(self, address: str) -> dict[str, Any]:
        if not address:
            raise ValidationError("Address is required")
        return {
            "address": address,
            "balance": "0",
            "denom": DENOM,
            "network": self.chain_id,
        }

    def submit_transaction(
        self,
        sender: str | None,
        recipient: str | None,
        signature: str | None,
        amount: str | None = None,
        data: Any = None,
    ) -> dict[str, Any]:
        if not sender or not recipient or not signature:
            raise ValidationError("From, to, and signature are required")
        return {
            "hash": synthetic_tx_hash(epoch_ms()),
            "from": sender,
            "to": recipient,
            "amount": amount or "0",
            "data": data,
            "status": "pending",
            "network": self.chain_id,
            "timestamp": utc_iso(),
        }
