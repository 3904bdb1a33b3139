"""Key-value store factory: creates memory, file or Redis backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from school_cache.domain.exceptions import CacheConfigError
from school_cache.infrastructure.cache.stores.base import KeyValueStore

if TYPE_CHECKING:
    from school_cache.core.config import Settings


def create_key_value_store(settings: "Settings | None" = None) -> KeyValueStore:
    """Create the fallback cache store from settings.

    Args:
        settings: Application settings; if None, uses get_settings().

    Returns:
        InMemoryKeyValueStore, FileKeyValueStore or RedisKeyValueStore.

    Raises:
        CacheConfigError: Unknown backend or missing required config.
    """
    from school_cache.core.config import get_settings

    s = settings or get_settings()
    backend = s.cache_store_backend.lower()

    if backend == "memory":
        from school_cache.infrastructure.cache.stores.memory_store import (
            InMemoryKeyValueStore,
        )

        return InMemoryKeyValueStore()
    if backend == "file":
        from school_cache.infrastructure.cache.stores.file_store import FileKeyValueStore

        if not s.cache_store_path:
            raise CacheConfigError("CACHE_STORE_PATH required for file backend")
        return FileKeyValueStore(s.cache_store_path)
    if backend == "redis":
        from school_cache.infrastructure.cache.stores.redis_store import (
            RedisKeyValueStore,
        )

        return RedisKeyValueStore(settings=s)
    raise CacheConfigError(
        f"Unknown cache store backend: {backend}. Supported: 'memory', 'file', 'redis'"
    )
