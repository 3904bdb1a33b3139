"""Tests for domain and storage exceptions."""

from school_cache.domain.exceptions import (
    CacheCodecError,
    CacheConfigError,
    DecodeError,
    FetchError,
    SchoolCacheException,
    ValidationException,
)
from school_cache.infrastructure.exceptions import StorageError, StorageUnavailableError


class TestSchoolCacheException:
    def test_defaults(self) -> None:
        exc = SchoolCacheException("boom")
        assert exc.error_code == "SchoolCacheException"
        assert exc.to_dict() == {"error": "SchoolCacheException", "message": "boom", "details": {}}


class TestSubclasses:
    def test_validation(self) -> None:
        exc = ValidationException("bad action", field="action")
        assert exc.to_dict()["error"] == "VALIDATION_ERROR"
        assert exc.details == {"field": "action"}

    def test_config_error(self) -> None:
        assert CacheConfigError("unknown", resource="X").details == {"resource": "X"}
        assert CacheConfigError("unknown").details == {}

    def test_codec_and_decode(self) -> None:
        assert CacheCodecError("not serializable").error_code == "CACHE_CODEC_ERROR"
        assert DecodeError("bad json").details == {"reason": "bad json"}

    def test_fetch_error_keeps_original(self) -> None:
        original = TimeoutError()
        exc = FetchError("USER_PROFILE", original)
        assert exc.original is original
        assert exc.message == "TimeoutError"
        assert exc.details == {"resource": "USER_PROFILE", "type": "TimeoutError"}

    def test_storage_errors(self) -> None:
        exc = StorageUnavailableError("read", "sms:k")
        assert isinstance(exc, StorageError)
        assert isinstance(exc, SchoolCacheException)
        assert exc.error_code == "STORAGE_ERROR"
        assert exc.details["reason"] == "store unavailable"
