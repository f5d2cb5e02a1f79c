"""PersonaChain-style identifiers.

DID Method: did:persona:<32 hex chars of sha256 over the holder's details>
Wallet: persona1<38 hex chars of sha256(did)>

Nothing here touches a ledger. Issuance receipts are fabricated so that
clients see the same shapes a real registration would return.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass

from personapass.core.models import IssuanceReceipt, sha256_hex

DID_METHOD = "did:persona"
WALLET_PREFIX = "persona1"
TX_PREFIX = "persona_tx_"
DID_HASH_LENGTH = 32
WALLET_HASH_LENGTH = 38

_BLOCK_HEIGHT_BASE = 12000
_BLOCK_HEIGHT_SPREAD = 1000
_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class DerivedIdentity:
    did: str
    wallet_address: str
    seed_hash: str


def derive_identity(
    first_name: str, last_name: str, email: str | None, timestamp_ms: int
) -> DerivedIdentity:
    """Hash the holder's details into a DID and its wallet address.

    The creation timestamp is part of the hash input, so the same holder
    gets a different DID in a fresh process.
    """
    seed_hash = sha256_hex(f"{first_name}:{last_name}:{email or 'no-email'}:{timestamp_ms}")
    did = f"{DID_METHOD}:{seed_hash[:DID_HASH_LENGTH]}"
    return DerivedIdentity(
        did=did,
        wallet_address=derive_wallet_address(did),
        seed_hash=seed_hash,
    )


def derive_wallet_address(did: str) -> str:
    return WALLET_PREFIX + sha256_hex(did)[:WALLET_HASH_LENGTH]


def fabricate_receipt(
    seed_hash: str, network: str, timestamp_ms: int, rng: random.Random | None = None
) -> IssuanceReceipt:
    """Simulated registration: plausible block height and a synthetic tx hash."""
    rng = rng or random
    return IssuanceReceipt(
        network=network,
        block_height=_BLOCK_HEIGHT_BASE + rng.randrange(_BLOCK_HEIGHT_SPREAD),
        tx_hash=f"{TX_PREFIX}{timestamp_ms}_{seed_hash[:12]}",
    )


def random_base36(length: int, rng: random.Random | None = None) -> str:
    rng = rng or random
    return "".join(rng.choice(_BASE36) for _ in range(length))


def random_wallet_address(rng: random.Random | None = None) -> str:
    """Wallet-style address for a freshly created account (not derived from any input)."""
    return WALLET_PREFIX + random_base36(13, rng)


def synthetic_tx_hash(timestamp_ms: int, rng: random.Random | None = None) -> str:
    return f"{TX_PREFIX}{timestamp_ms}_{random_base36(13, rng)}"
