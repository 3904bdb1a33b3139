"""School management data caching layer.

Fallback (device-local) cache with TTL and schema versioning, tag-based
server cache with request memoization, and cache health monitoring.
"""

__version__ = "1.0.0"
