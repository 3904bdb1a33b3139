"""Cache key builders. Single place for key format (DRY).

Fallback cache keys are built from CacheKey (see domain.value_objects);
the tagged cache builds its own keys from key parts and call arguments.
"""

from __future__ import annotations

from typing import Any

from school_cache.domain.exceptions import CacheConfigError
from school_cache.domain.value_objects import CacheConfig, CacheKey, in_namespace


def storage_key(
    logical_name: str,
    config: CacheConfig,
    root_prefix: str,
    **scope: Any,
) -> str:
    """Storage key for one fallback cache entry.

    The first segment is config.storage_prefix when set, else root_prefix.

    Raises:
        CacheConfigError: If storage_prefix is not root_prefix or a sub-namespace of it.
        ValueError: If a key component contains a separator.
    """
    prefix = config.storage_prefix or root_prefix
    if not in_namespace(prefix, root_prefix):
        raise CacheConfigError(
            f"storage_prefix {prefix!r} is outside root namespace {root_prefix!r}",
            resource=logical_name,
        )
    return CacheKey.of(logical_name, **scope).to_storage_key(prefix)

