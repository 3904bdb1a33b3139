"""Infrastructure exceptions for cache storage backends.

Storage errors extend SchoolCacheException so presentation can map them
to HTTP responses consistently. The fallback cache manager catches them
and degrades to a cache miss.
"""

from school_cache.domain.exceptions import SchoolCacheException


class StorageError(SchoolCacheException):
    """A key-value store operation failed (I/O, quota, connection).

    Attributes:
        operation: read, write, delete, list or clear.
        key: Key (or prefix) involved, if any.
    """

    def __init__(self, operation: str, key: str | None, reason: str) -> None:
        self.operation = operation
        self.key = key
        super().__init__(
            f"Storage {operation} failed for {key!r}: {reason}",
            "STORAGE_ERROR",
            {"operation": operation, "key": key, "reason": reason},
        )


class StorageUnavailableError(StorageError):
    """Backend not connected (e.g. Redis down, storage permission revoked)."""

    def __init__(self, operation: str, key: str | None = None) -> None:
        super().__init__(operation, key, "store unavailable")
