"""Application services built on the cache layers."""

from school_cache.application.services.cache_warmer import CacheWarmer, WarmResult
from school_cache.application.services.cached_query import (
    ApiResponse,
    CachedApiService,
    CachedQuery,
)

__all__ = [
    "ApiResponse",
    "CacheWarmer",
    "CachedApiService",
    "CachedQuery",
    "WarmResult",
]
