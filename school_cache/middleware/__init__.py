"""HTTP middleware: request memoization and cache headers.

Applied in main app; order matters (last added = outermost).
"""

from school_cache.middleware.cache_headers import CacheHeadersMiddleware
from school_cache.middleware.request_memo import RequestMemoMiddleware

__all__ = [
    "CacheHeadersMiddleware",
    "RequestMemoMiddleware",
]
