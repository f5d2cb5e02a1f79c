"""Domain models for PersonaPass.

- AccountSecret: TOTP secret bound to an account identifier (email)
- PersonalData: the name/email block attached to an issued DID
- IssuanceReceipt: simulated ledger write backing a DID
- DIDRecord: one issued identity, keyed by its normalized name
- Account: response-only result of account creation (never stored)

Records serialize with the camelCase field names the web clients expect.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_iso(dt: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    dt = dt or _utcnow()
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_ms() -> int:
    return int(_utcnow().timestamp() * 1000)


def sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def name_key(first_name: str, last_name: str) -> str:
    """Normalized idempotency key for DID issuance: ``first-last`` lowercased."""
    return f"{first_name.lower()}-{last_name.lower()}"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ReceiptStatus(str, Enum):
    REGISTERED = "registered"


class ChainStatus(str, Enum):
    OPERATIONAL = "operational"
    INITIALIZING = "initializing"


class KycStatus(str, Enum):
    PENDING = "pending"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class AccountSecret(_CamelModel):
    account_identifier: str
    secret: str
    created_at: str = Field(default_factory=utc_iso)


class PersonalData(_CamelModel):
    first_name: str
    last_name: str
    email: str | None = None
    created_at: str = Field(default_factory=utc_iso)
    verified: bool = False


class IssuanceReceipt(BaseModel):
    network: str
    block_height: int = Field(alias="blockHeight", ge=0)
    tx_hash: str = Field(alias="txHash")
    status: ReceiptStatus = ReceiptStatus.REGISTERED

    model_config = ConfigDict(populate_by_name=True)


class DIDRecord(_CamelModel):
    """An issued DID. At most one exists per ``name_key``."""

    name_key: str
    did: str
    wallet_address: str
    user_data: PersonalData
    blockchain: IssuanceReceipt


class Account(_CamelModel):
    id: str
    email: str
    did: str
    wallet_address: str
    kyc_status: KycStatus = KycStatus.PENDING
    totp_setup: bool = True
