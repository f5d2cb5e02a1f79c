"""Process-local stores. Everything here is lost on restart."""

from __future__ import annotations

import asyncio
import logging

from personapass.core.models import AccountSecret, DIDRecord

logger = logging.getLogger("personapass.storage")


class InMemorySecretStore:
    """Account identifier -> TOTP secret. Re-setup overwrites."""

    def __init__(self) -> None:
        self._secrets: dict[str, AccountSecret] = {}

    async def put(self, record: AccountSecret) -> None:
        replaced = record.account_identifier in self._secrets
        self._secrets[record.account_identifier] = record
        if replaced:
            logger.debug("Replaced existing TOTP secret")

    async def get(self, account_identifier: str) -> AccountSecret | None:
        return self._secrets.get(account_identifier)

    async def count(self) -> int:
        return len(self._secrets)

    def clear(self) -> None:
        self._secrets.clear()


class InMemoryDIDRegistry:
    """Name key -> DID record, with one creation lock per name key."""

    def __init__(self) -> None:
        self._records: dict[str, DIDRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, name_key: str) -> asyncio.Lock:
        lock = self._locks.get(name_key)
        if lock is None:
            lock = self._locks[name_key] = asyncio.Lock()
        return lock

    async def put(self, record: DIDRecord) -> None:
        self._records[record.name_key] = record

    async def get(self, name_key: str) -> DIDRecord | None:
        return self._records.get(name_key)

    async def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()
        self._locks.clear()
