"""Domain exceptions for the school cache.

Defines cache-level exceptions that represent programming errors
(misconfiguration) and recoverable cache failures. These exceptions are
independent of infrastructure concerns. Presentation layer maps them to
HTTP responses in exception handlers.
"""

from typing import Any


class SchoolCacheException(Exception):
    """Base exception for all school cache errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. resource, key).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(SchoolCacheException):
    """Raised when request input fails validation (e.g. unknown action)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class CacheConfigError(SchoolCacheException):
    """Raised for cache misconfiguration: unregistered resource, bad TTL, unknown backend.

    Always a programming error; surfaces at setup time rather than being
    downgraded to an uncached read.
    """

    def __init__(self, message: str, resource: str | None = None) -> None:
        details = {"resource": resource} if resource else {}
        super().__init__(message, "CACHE_CONFIG_ERROR", details)


class CacheCodecError(SchoolCacheException):
    """Raised when a value cannot be encoded into a cache envelope."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Value cannot be encoded for caching: {reason}",
            "CACHE_CODEC_ERROR",
            {"reason": reason},
        )


class DecodeError(SchoolCacheException):
    """A stored envelope is corrupt or incompatible.

    Returned inside Err by the codec, never raised; callers treat it as a miss.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Cached envelope could not be decoded: {reason}",
            "DECODE_ERROR",
            {"reason": reason},
        )


class FetchError(SchoolCacheException):
    """The caller-supplied fetcher failed.

    Used as the error state of cached queries; the original exception is
    kept as __cause__ and on .original.
    """

    def __init__(self, resource: str, original: BaseException) -> None:
        self.original = original
        super().__init__(
            str(original) or original.__class__.__name__,
            "FETCH_ERROR",
            {"resource": resource, "type": original.__class__.__name__},
        )
