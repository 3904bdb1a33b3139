"""Domain value objects for the school cache.

Value objects are immutable types with self-validation. They have no
identity, only value.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from school_cache.core.constants import CACHE_KEY_SEP, CACHE_NAMESPACE_SEP, CACHE_PARAM_SEP
from school_cache.domain.enums import CachePriority
from school_cache.domain.exceptions import CacheConfigError


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains a key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must be a non-empty string")
    for sep in (CACHE_KEY_SEP, CACHE_PARAM_SEP):
        if sep in value:
            raise ValueError(
                f"Cache key component {name!r} must not contain separator {sep!r}"
            )


def in_namespace(segment: str, root: str) -> bool:
    """True if segment is root itself or one of its sub-namespaces (root-<name>)."""
    return segment == root or segment.startswith(root + CACHE_NAMESPACE_SEP)


@dataclass(frozen=True, eq=False)
class CacheKey:
    """Logical cache identity: resource name plus scoping dimensions.

    Params with value None are dropped so optional scopes (e.g. no
    school_id) do not change the key. Params are kept sorted by name so
    identical logical requests always serialize to the same string.
    """

    logical_name: str
    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _validate_key_component(self.logical_name, "logical_name")
        cleaned: dict[str, str] = {}
        for name in sorted(self.params):
            value = self.params[name]
            if value is None:
                continue
            _validate_key_component(name, "scope name")
            _validate_key_component(str(value), name)
            cleaned[name] = str(value)
        object.__setattr__(self, "params", MappingProxyType(cleaned))

    @classmethod
    def of(cls, logical_name: str, **scope: Any) -> "CacheKey":
        """Build a key from keyword scope params (None values ignored)."""
        return cls(logical_name, {k: v for k, v in scope.items() if v is not None})

    def to_storage_key(self, prefix: str) -> str:
        """Serialize as <prefix>:<logical_name>[:<name>=<value>...]."""
        parts = [prefix, self.logical_name]
        parts.extend(f"{k}{CACHE_PARAM_SEP}{v}" for k, v in self.params.items())
        return CACHE_KEY_SEP.join(parts)

    @classmethod
    def parse(cls, storage_key: str, prefix: str) -> "CacheKey | None":
        """Inverse of to_storage_key.

        The first segment must be prefix or a sub-namespace of it
        ("sms-teacher" under root "sms", but not "smsarchive"). Returns None
        for keys outside the prefix or malformed keys.
        """
        segments = storage_key.split(CACHE_KEY_SEP)
        if len(segments) < 2 or not in_namespace(segments[0], prefix):
            return None
        params: dict[str, str] = {}
        for segment in segments[2:]:
            name, sep, value = segment.partition(CACHE_PARAM_SEP)
            if not sep or not name or not value:
                return None
            params[name] = value
        try:
            return cls(segments[1], params)
        except ValueError:
            return None

    def scope(self, name: str) -> str | None:
        """Return the value of one scope param, or None."""
        return self.params.get(name)

    def __hash__(self) -> int:
        return hash((self.logical_name, tuple(self.params.items())))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheKey):
            return NotImplemented
        return self.logical_name == other.logical_name and dict(self.params) == dict(
            other.params
        )


@dataclass(frozen=True)
class CacheConfig:
    """Per-resource cache policy. Immutable; TTL must be positive.

    storage_prefix replaces the manager's root prefix as the first key
    segment; it must start with the root prefix so bulk clears still find
    it. Empty means the root prefix itself.
    """

    ttl_millis: int
    storage_prefix: str = ""
    priority: CachePriority = CachePriority.MEDIUM

    def __post_init__(self) -> None:
        if isinstance(self.ttl_millis, bool) or not isinstance(self.ttl_millis, int):
            raise CacheConfigError(
                f"ttl_millis must be an integer, got {type(self.ttl_millis).__name__}"
            )
        if self.ttl_millis <= 0:
            raise CacheConfigError(f"ttl_millis must be > 0, got {self.ttl_millis}")
        if self.storage_prefix:
            _validate_key_component(self.storage_prefix, "storage_prefix")

    @classmethod
    def from_seconds(
        cls,
        ttl_seconds: int,
        storage_prefix: str = "",
        priority: CachePriority = CachePriority.MEDIUM,
    ) -> "CacheConfig":
        """Build a config from a TTL in seconds."""
        return cls(ttl_seconds * 1000, storage_prefix, priority)
