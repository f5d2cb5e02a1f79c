"""Identity service layer: orchestrates TOTP secrets, DID issuance, accounts and chain status."""

from __future__ import annotations

import logging
import random
import re
from typing import Any

from personapass.chain.client import CHAIN_FEATURES, ChainClient
from personapass.core.models import (
    Account,
    AccountSecret,
    ChainStatus,
    DIDRecord,
    PersonalData,
    epoch_ms,
    name_key,
)
from personapass.crypto import totp
from personapass.crypto.did import (
    DID_METHOD,
    derive_identity,
    fabricate_receipt,
    random_wallet_address,
)
from personapass.exceptions import (
    InvalidCodeError,
    NotSetUpError,
    UpstreamUnavailableError,
    ValidationError,
)
from personapass.logging_config import redact
from personapass.storage.base import DIDRepository, SecretRepository
from personapass.storage.memory import InMemoryDIDRegistry, InMemorySecretStore

logger = logging.getLogger("personapass.service")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Placeholder recovery codes until real ones are issued and stored.
RECOVERY_CODES = ("12345678", "87654321", "11223344", "44332211", "55667788")

SESSION_LAMBDA = "personapass-session-create-prod"


def _require_email(email: str | None) -> str:
    if not email:
        raise ValidationError("Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    return email


def _require_names(first_name: str | None, last_name: str | None) -> tuple[str, str]:
    if not first_name or not last_name:
        raise ValidationError("First name and last name are required")
    return first_name, last_name


class IdentityService:
    """Owns the secret store, DID registry and chain client for one app instance."""

    def __init__(
        self,
        chain: ChainClient,
        secrets: SecretRepository | None = None,
        dids: DIDRepository | None = None,
        issuer_name: str = "PersonaPass",
        session_endpoint: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.chain = chain
        self.secrets = secrets if secrets is not None else InMemorySecretStore()
        self.dids = dids if dids is not None else InMemoryDIDRegistry()
        self.issuer_name = issuer_name
        self.session_endpoint = session_endpoint
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # TOTP
    # ------------------------------------------------------------------

    async def setup_totp(self, account_identifier: str | None) -> dict[str, Any]:
        """Generate and store a fresh secret for the account, replacing any old one."""
        email = _require_email(account_identifier)
        logger.info("TOTP setup request for %s", redact(email))

        secret = totp.generate_secret()
        await self.secrets.put(AccountSecret(account_identifier=email, secret=secret))

        uri = totp.provisioning_uri(secret, email, self.issuer_name)
        return {
            "qrCode": totp.qr_code_data_url(uri),
            "otpauthUrl": uri,
            "secret": secret,
            "backupCodes": list(RECOVERY_CODES),
        }

    async def verify_totp(
        self,
        account_identifier: str,
        code: str | int | None,
        now: float | None = None,
    ) -> None:
        """Check ``code`` against the stored secret, tolerating two steps of skew.

        Raises:
            NotSetUpError: no secret was ever set up for the account.
            InvalidCodeError: the code matches no step in the tolerance window.
        """
        record = await self.secrets.get(account_identifier)
        if record is None:
            raise NotSetUpError("TOTP not set up for this email. Please set up TOTP first.")
        candidate = "" if code is None else str(code).strip()
        if not totp.verify_code(record.secret, candidate, at=now):
            logger.info("TOTP verification failed for %s", redact(account_identifier))
            raise InvalidCodeError("Invalid TOTP code. Please check your authenticator app.")

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def create_account(
        self,
        email: str | None,
        password: str | None,
        totp_code: str | int | None,
        now: float | None = None,
    ) -> Account:
        if not email or not password or not totp_code:
            raise ValidationError("Email, password, and TOTP code are required")
        _require_email(email)
        await self.verify_totp(email, totp_code, now=now)

        logger.info("Account creation request for %s", redact(email))
        wallet = random_wallet_address(self._rng)
        return Account(
            id=f"user_{epoch_ms()}",
            email=email,
            did=f"{DID_METHOD}:{wallet}",
            wallet_address=wallet,
        )

    def login(
        self, email: str | None, password: str | None, totp_code: str | int | None
    ) -> dict[str, Any]:
        if not email or not password or not totp_code:
            raise ValidationError("Email, password, and TOTP code are required")
        logger.info("Login attempt for %s", redact(email))
        return {
            "lambdaFunction": SESSION_LAMBDA,
            "endpoint": self.session_endpoint,
        }

    # ------------------------------------------------------------------
    # DIDs
    # ------------------------------------------------------------------

    async def create_or_get_did(
        self,
        first_name: str | None,
        last_name: str | None,
        email: str | None = None,
    ) -> tuple[DIDRecord, bool]:
        """Issue a DID for the name pair, or return the one already issued.

        Returns ``(record, is_existing)``. Creation for one name key is
        serialized, so concurrent first requests yield a single record.
        """
        first_name, last_name = _require_names(first_name, last_name)
        key = name_key(first_name, last_name)
        logger.info(
            "DID creation request for %s %s (email %s)",
            redact(first_name, 1),
            redact(last_name, 1),
            redact(email),
        )

        async with self.dids.lock(key):
            existing = await self.dids.get(key)
            if existing is not None:
                logger.info("Returning existing DID %s...", existing.did[:20])
                return existing, True

            ts = epoch_ms()
            identity = derive_identity(first_name, last_name, email, ts)
            receipt = fabricate_receipt(identity.seed_hash, self.chain.chain_id, ts, self._rng)
            record = DIDRecord(
                name_key=key,
                did=identity.did,
                wallet_address=identity.wallet_address,
                user_data=PersonalData(first_name=first_name, last_name=last_name, email=email),
                blockchain=receipt,
            )
            await self.dids.put(record)

        logger.info(
            "Created new DID %s... wallet %s... at block %d",
            record.did[:20],
            record.wallet_address[:15],
            receipt.block_height,
        )
        return record, False

    async def get_did(self, first_name: str | None, last_name: str | None) -> DIDRecord | None:
        first_name, last_name = _require_names(first_name, last_name)
        record = await self.dids.get(name_key(first_name, last_name))
        if record is not None:
            logger.info("Retrieved existing DID %s...", record.did[:20])
        return record

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    async def blockchain_status(self) -> dict[str, Any]:
        """Probe the validator; an unreachable chain reports ``initializing``."""
        logger.info("Checking PersonaChain status at %s", self.chain.rpc_url)
        try:
            await self.chain.probe_status()
        except UpstreamUnavailableError as exc:
            logger.info("PersonaChain not ready yet: %s", exc.message)
            status = ChainStatus.INITIALIZING
            message = "PersonaChain validator is starting up (typically 5-10 minutes)"
        else:
            status = ChainStatus.OPERATIONAL
            message = "PersonaChain validator is operational"
        return {
            "name": "PersonaChain",
            "rpc_url": self.chain.rpc_url,
            "api_url": self.chain.api_url,
            "chain_id": self.chain.chain_id,
            "status": status.value,
            "message": message,
            "features": {feature: "available" for feature in CHAIN_FEATURES},
        }
