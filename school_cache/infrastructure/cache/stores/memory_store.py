"""In-process key-value store. Not persistent; used in tests and as the default dev backend."""

from __future__ import annotations

from collections.abc import AsyncIterator

from school_cache.infrastructure.cache.stores.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Values are kept as the raw encoded strings."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def read(self, key: str) -> str | None:
        return self._data.get(key)

    async def write(self, key: str, raw: str) -> None:
        self._data[key] = raw

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        # Snapshot so callers may delete while iterating.
        for key in list(self._data):
            if key.startswith(prefix):
                yield key

    def __len__(self) -> int:
        return len(self._data)
