"""Key-value store interface for the fallback cache.

Backends (in-memory, file, Redis) implement the abstract operations;
bulk operations are provided here in terms of them and may be overridden
with a faster native version.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable

from school_cache.domain.entities import ClearResult
from school_cache.infrastructure.exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Async string key-value store with prefix listing.

    Error contract:
        read: returns None for an absent key; raises StorageError on backend failure.
        write: raises StorageError (quota exceeded, I/O, connection).
        delete: idempotent; raises StorageError only on backend failure.
        iter_keys: yields keys only (never values); raises StorageError.
        clear / delete_many: never raise per key; failures are reported in ClearResult.
    """

    async def open(self) -> None:
        """Acquire backend resources. Called once by the owning manager."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def read(self, key: str) -> str | None:
        """Return the raw value for key, or None if absent."""

    @abstractmethod
    async def write(self, key: str, raw: str) -> None:
        """Store raw under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""

    @abstractmethod
    def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        """Yield every key starting with prefix."""

    async def list_keys(self, prefix: str = "") -> list[str]:
        """Collect iter_keys(prefix) into a list (keys only)."""
        return [key async for key in self.iter_keys(prefix)]

    async def delete_many(self, keys: Iterable[str]) -> ClearResult:
        """Delete each key, collecting the ones that failed."""
        removed: list[str] = []
        failed: list[str] = []
        for key in keys:
            try:
                await self.delete(key)
                removed.append(key)
            except StorageError as e:
                logger.warning("Store delete failed for %s: %s", key, e.message)
                failed.append(key)
        return ClearResult(removed=tuple(removed), failed=tuple(failed))

    async def clear(self, prefix: str = "") -> ClearResult:
        """Delete every key starting with prefix.

        Keys are collected before deletion so the listing is not mutated
        while it is iterated. A listing failure is reported as a failed
        clear of the prefix itself.
        """
        try:
            keys = await self.list_keys(prefix)
        except StorageError as e:
            logger.warning("Store clear could not list %r: %s", prefix, e.message)
            return ClearResult(failed=(prefix,))
        return await self.delete_many(keys)
