"""Key-value stores backing the fallback cache (memory, file, Redis)."""

from school_cache.infrastructure.cache.stores.base import KeyValueStore
from school_cache.infrastructure.cache.stores.factory import create_key_value_store
from school_cache.infrastructure.cache.stores.file_store import FileKeyValueStore
from school_cache.infrastructure.cache.stores.memory_store import InMemoryKeyValueStore
from school_cache.infrastructure.cache.stores.redis_store import RedisKeyValueStore

__all__ = [
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "create_key_value_store",
]
