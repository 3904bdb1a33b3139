"""Cache layers: fallback (device-local) cache, tagged server cache, monitoring.

Key format lives in keys.py and domain.value_objects.CacheKey; stores are
in stores/. Nothing here is instantiated at import time; see
core.container.CacheContainer for wiring.
"""

from school_cache.infrastructure.cache.codec import EnvelopeCodec
from school_cache.infrastructure.cache.connectivity import (
    ConnectivityProbe,
    HttpConnectivityProbe,
    StaticConnectivityProbe,
)
from school_cache.infrastructure.cache.fallback_manager import (
    FallbackCacheManager,
    format_bytes,
)
from school_cache.infrastructure.cache.keys import storage_key
from school_cache.infrastructure.cache.monitor import CacheMonitor
from school_cache.infrastructure.cache.policy import FreshnessPolicy
from school_cache.infrastructure.cache.registry import (
    DEFAULT_CACHE_CONFIGS,
    CacheConfigRegistry,
    default_registry,
)
from school_cache.infrastructure.cache.request_memo import memoize_request, request_scope
from school_cache.infrastructure.cache.tagged_cache import TaggedCache, TaggedCacheStats

__all__ = [
    "CacheConfigRegistry",
    "CacheMonitor",
    "ConnectivityProbe",
    "DEFAULT_CACHE_CONFIGS",
    "EnvelopeCodec",
    "FallbackCacheManager",
    "FreshnessPolicy",
    "HttpConnectivityProbe",
    "StaticConnectivityProbe",
    "TaggedCache",
    "TaggedCacheStats",
    "default_registry",
    "format_bytes",
    "memoize_request",
    "request_scope",
    "storage_key",
]
