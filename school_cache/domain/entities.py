"""Domain entities for the school cache.

Plain frozen dataclasses; no persistence or transport concerns. The
envelope is owned by the store and replaced whole, never patched.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from school_cache.domain.enums import LookupStatus
from school_cache.domain.value_objects import CacheConfig

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEnvelope(Generic[T]):
    """Stored wrapper pairing a cached value with write time, TTL, and schema version."""

    value: T
    stored_at_millis: int
    ttl_millis: int
    schema_version: int

    def age_millis(self, now_millis: int) -> int:
        """Milliseconds elapsed since the envelope was written."""
        return now_millis - self.stored_at_millis

    def expires_at_millis(self) -> int:
        return self.stored_at_millis + self.ttl_millis


@dataclass(frozen=True)
class CacheLookup(Generic[T]):
    """Typed outcome of a single fallback-cache read.

    value is only meaningful when status is HIT; a cached None is still a hit.
    """

    status: LookupStatus
    value: T | None = None

    @property
    def hit(self) -> bool:
        return self.status == LookupStatus.HIT


@dataclass(frozen=True)
class ClearResult:
    """Keys removed by a bulk clear and keys whose deletion failed."""

    removed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def removed_count(self) -> int:
        return len(self.removed)


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of purging expired, version-mismatched, or corrupt records."""

    removed_count: int = 0
    freed_bytes: int = 0


@dataclass(frozen=True)
class CacheStats:
    """Derived view of the fallback cache; recomputed on demand, never persisted."""

    total_keys: int
    approx_size_description: str
    is_network_online: bool
    total_size_bytes: int = 0
    expired_keys: int = 0


@dataclass(frozen=True)
class BatchGetResult(Generic[T]):
    """One entry of a batch read: the logical name, its scope, and the fresh value if any."""

    logical_name: str
    scope: dict[str, Any] = field(default_factory=dict)
    value: T | None = None
    hit: bool = False


@dataclass(frozen=True)
class BatchEntry(Generic[T]):
    """One item of a batch write or read.

    resource is a CacheResource or its name; value is ignored for reads.
    config overrides the registered policy when given.
    """

    resource: Any
    scope: dict[str, Any] = field(default_factory=dict)
    value: T | None = None
    config: CacheConfig | None = None
