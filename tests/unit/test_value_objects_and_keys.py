"""Tests for CacheKey, CacheConfig and the key builders."""

import pytest

from school_cache.domain.enums import CachePriority
from school_cache.domain.exceptions import CacheConfigError
from school_cache.domain.value_objects import CacheConfig, CacheKey
from school_cache.infrastructure.cache.keys import storage_key


class TestCacheKey:
    """Storage keys are deterministic and scope-sorted; None scopes are dropped."""

    def test_storage_key_sorted(self) -> None:
        key = CacheKey.of("CLASS_LIST", user_id="u1", school_id="s1")
        assert key.to_storage_key("sms") == "sms:CLASS_LIST:school_id=s1:user_id=u1"

    def test_none_scope_dropped(self) -> None:
        assert CacheKey.of("USER_PROFILE", user_id="u1", school_id=None) == CacheKey.of(
            "USER_PROFILE", user_id="u1"
        )

    def test_values_stringified(self) -> None:
        assert CacheKey.of("CLASS_LIST", class_id=42).scope("class_id") == "42"

    def test_separator_rejected(self) -> None:
        with pytest.raises(ValueError, match="separator"):
            CacheKey.of("CLASS_LIST", user_id="a:b")
        with pytest.raises(ValueError, match="separator"):
            CacheKey.of("CLASS=LIST")

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            CacheKey.of("")

    def test_parse_inverts_to_storage_key(self) -> None:
        key = CacheKey.of("TEACHER_DATA", user_id="u1", school_id="s9")
        assert CacheKey.parse(key.to_storage_key("sms-teacher"), "sms") == key

    def test_parse_rejects_foreign_and_malformed(self) -> None:
        assert CacheKey.parse("other:CLASS_LIST", "sms") is None
        assert CacheKey.parse("sms", "sms") is None
        assert CacheKey.parse("sms:CLASS_LIST:user_id", "sms") is None

    def test_parse_rejects_prefix_text_match(self) -> None:
        assert CacheKey.parse("smsarchive:CLASS_LIST", "sms") is None
        assert CacheKey.parse("sms-archive:CLASS_LIST", "sms") == CacheKey("CLASS_LIST")

    def test_hashable(self) -> None:
        a = CacheKey.of("X", user_id="1")
        b = CacheKey.of("X", user_id="1")
        assert len({a, b}) == 1


class TestCacheConfig:
    """TTL must be a positive integer number of milliseconds."""

    def test_from_seconds(self) -> None:
        config = CacheConfig.from_seconds(180, priority=CachePriority.HIGH)
        assert config.ttl_millis == 180_000
        assert config.priority == CachePriority.HIGH

    @pytest.mark.parametrize("ttl", [0, -1, 1.5, True])
    def test_invalid_ttl_rejected(self, ttl) -> None:
        with pytest.raises(CacheConfigError):
            CacheConfig(ttl)


class TestStorageKey:
    def test_root_prefix_used_by_default(self) -> None:
        assert storage_key("X", CacheConfig(1), "sms", user_id="u1") == "sms:X:user_id=u1"

    def test_resource_prefix_under_root(self) -> None:
        config = CacheConfig(1, storage_prefix="sms-teacher")
        assert storage_key("LESSON_PLANS", config, "sms") == "sms-teacher:LESSON_PLANS"

    def test_prefix_outside_root_rejected(self) -> None:
        with pytest.raises(CacheConfigError):
            storage_key("X", CacheConfig(1, storage_prefix="other"), "sms")

    def test_prefix_sharing_root_text_rejected(self) -> None:
        with pytest.raises(CacheConfigError):
            storage_key("X", CacheConfig(1, storage_prefix="smsarchive"), "sms")
