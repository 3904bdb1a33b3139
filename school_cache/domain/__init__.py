"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from school_cache.domain.entities import (
    BatchEntry,
    BatchGetResult,
    CacheEnvelope,
    CacheLookup,
    CacheStats,
    CleanupResult,
    ClearResult,
)
from school_cache.domain.enums import (
    CacheAction,
    CachePriority,
    CacheResource,
    Freshness,
    HealthState,
    LookupStatus,
)
from school_cache.domain.exceptions import (
    CacheCodecError,
    CacheConfigError,
    DecodeError,
    FetchError,
    SchoolCacheException,
    ValidationException,
)
from school_cache.domain.value_objects import CacheConfig, CacheKey

__all__ = [
    # Entities
    "BatchEntry",
    "BatchGetResult",
    "CacheEnvelope",
    "CacheLookup",
    "CacheStats",
    "CleanupResult",
    "ClearResult",
    # Enums
    "CacheAction",
    "CachePriority",
    "CacheResource",
    "Freshness",
    "HealthState",
    "LookupStatus",
    # Exceptions
    "CacheCodecError",
    "CacheConfigError",
    "DecodeError",
    "FetchError",
    "SchoolCacheException",
    "ValidationException",
    # Value objects
    "CacheConfig",
    "CacheKey",
]
