"""Tests for FallbackCacheManager: freshness, fetch-once, scoping, clears, stats, batch."""

import json

import pytest

from school_cache.domain.entities import BatchEntry, CleanupResult
from school_cache.domain.enums import CacheResource, LookupStatus
from school_cache.domain.exceptions import CacheConfigError
from school_cache.domain.value_objects import CacheConfig
from school_cache.infrastructure.cache.connectivity import StaticConnectivityProbe
from school_cache.infrastructure.cache.fallback_manager import (
    FallbackCacheManager,
    format_bytes,
)
from school_cache.infrastructure.cache.policy import FreshnessPolicy
from school_cache.infrastructure.cache.stores.memory_store import InMemoryKeyValueStore
from school_cache.infrastructure.exceptions import StorageError

PROFILE = CacheResource.USER_PROFILE  # 300 s


class CountingFetcher:
    def __init__(self, *values) -> None:
        self.values = list(values)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.values[min(self.calls, len(self.values)) - 1]


class BrokenStore(InMemoryKeyValueStore):
    """Store whose reads and writes fail."""

    async def read(self, key: str) -> str | None:
        raise StorageError("read", key, "disk full")

    async def write(self, key: str, raw: str) -> None:
        raise StorageError("write", key, "quota exceeded")


class StickyStore(InMemoryKeyValueStore):
    """Store that refuses to delete the keys in stuck."""

    def __init__(self, *stuck: str) -> None:
        super().__init__()
        self.stuck = set(stuck)

    async def delete(self, key: str) -> None:
        if key in self.stuck:
            raise StorageError("delete", key, "permission revoked")
        await super().delete(key)


class TestFreshness:
    """An entry is served while age < ttl and refetched at exactly ttl."""

    async def test_fresh_one_ms_before_ttl(self, manager, clock) -> None:
        fetcher = CountingFetcher({"name": "Ada"}, {"name": "Ada v2"})
        await manager.get_or_fetch(PROFILE, fetcher, user_id="u1")
        clock.advance(299_999)
        assert await manager.get_or_fetch(PROFILE, fetcher, user_id="u1") == {"name": "Ada"}
        assert fetcher.calls == 1

    async def test_stale_at_ttl(self, manager, clock, store) -> None:
        fetcher = CountingFetcher({"name": "Ada"}, {"name": "Ada v2"})
        await manager.get_or_fetch(PROFILE, fetcher, user_id="u1")
        clock.advance(300_000)
        assert (await manager.lookup(PROFILE, user_id="u1")).status == LookupStatus.STALE
        assert len(store) == 0
        assert await manager.get_or_fetch(PROFILE, fetcher, user_id="u1") == {"name": "Ada v2"}
        assert fetcher.calls == 2

    async def test_clock_moved_backwards_is_stale(self, manager, clock) -> None:
        await manager.set(PROFILE, "written-later", user_id="u1")
        clock.advance(-60_000)
        assert (await manager.lookup(PROFILE, user_id="u1")).status == LookupStatus.STALE

    async def test_dashboard_stats_scenario(self, manager, clock) -> None:
        """180 s TTL: hit at +100 s, refetch at +200 s."""
        fetcher = CountingFetcher({"students": 10}, {"students": 11})
        assert await manager.get_or_fetch(
            CacheResource.DASHBOARD_STATS, fetcher, user_id="u1"
        ) == {"students": 10}
        clock.advance(100_000)
        assert await manager.get_or_fetch(
            CacheResource.DASHBOARD_STATS, fetcher, user_id="u1"
        ) == {"students": 10}
        clock.advance(100_000)
        assert await manager.get_or_fetch(
            CacheResource.DASHBOARD_STATS, fetcher, user_id="u1"
        ) == {"students": 11}
        assert fetcher.calls == 2

    async def test_version_mismatch_is_miss_and_discarded(self, store, clock) -> None:
        old = FallbackCacheManager(store, policy=FreshnessPolicy(1), clock=clock)
        await old.set(PROFILE, "v1-shape", user_id="u1")
        new = FallbackCacheManager(store, policy=FreshnessPolicy(2), clock=clock)
        result = await new.lookup(PROFILE, user_id="u1")
        assert result.status == LookupStatus.VERSION_MISMATCH
        assert len(store) == 0

    async def test_legacy_record_without_version(self, manager, store) -> None:
        await store.write(
            "sms:USER_PROFILE:user_id=u1",
            json.dumps({"value": "x", "storedAt": 1_000, "ttl": 300_000}),
        )
        assert (await manager.lookup(PROFILE, user_id="u1")).status == (
            LookupStatus.VERSION_MISMATCH
        )

    async def test_corrupt_record_is_miss_and_discarded(self, manager, store) -> None:
        await store.write("sms:USER_PROFILE:user_id=u1", "{not json")
        assert (await manager.lookup(PROFILE, user_id="u1")).status == LookupStatus.DECODE_ERROR
        assert await manager.get(PROFILE, user_id="u1") is None
        assert len(store) == 0


class TestGetOrFetch:
    async def test_fetches_once_then_hits(self, manager) -> None:
        fetcher = CountingFetcher([1, 2, 3])
        for _ in range(3):
            assert await manager.get_or_fetch(CacheResource.CLASS_LIST, fetcher) == [1, 2, 3]
        assert fetcher.calls == 1

    async def test_cached_none_is_a_hit(self, manager) -> None:
        fetcher = CountingFetcher(None)
        await manager.get_or_fetch(PROFILE, fetcher, user_id="u1")
        await manager.get_or_fetch(PROFILE, fetcher, user_id="u1")
        assert fetcher.calls == 1
        assert (await manager.lookup(PROFILE, user_id="u1")).hit

    async def test_force_refresh_skips_read(self, manager) -> None:
        fetcher = CountingFetcher("a", "b")
        await manager.get_or_fetch(PROFILE, fetcher, user_id="u1")
        assert await manager.get_or_fetch(PROFILE, fetcher, force_refresh=True, user_id="u1") == "b"
        assert await manager.get(PROFILE, user_id="u1") == "b"

    async def test_fetcher_error_propagates_and_nothing_stored(self, manager, store) -> None:
        async def fail():
            raise ConnectionError("offline")

        with pytest.raises(ConnectionError):
            await manager.get_or_fetch(PROFILE, fail, user_id="u1")
        assert len(store) == 0

    async def test_storage_failure_degrades_to_fetch(self, clock) -> None:
        manager = FallbackCacheManager(BrokenStore(), clock=clock)
        fetcher = CountingFetcher("fresh")
        assert await manager.get_or_fetch(PROFILE, fetcher, user_id="u1") == "fresh"
        assert await manager.get_or_fetch(PROFILE, fetcher, user_id="u1") == "fresh"
        assert fetcher.calls == 2
        assert (await manager.lookup(PROFILE, user_id="u1")).status == LookupStatus.STORAGE_ERROR
        assert await manager.set(PROFILE, "x", user_id="u1") is False

    async def test_unregistered_resource_raises(self, manager) -> None:
        with pytest.raises(CacheConfigError):
            await manager.get_or_fetch("UNKNOWN", CountingFetcher(1))

    async def test_explicit_config_overrides_registry(self, manager, clock) -> None:
        fetcher = CountingFetcher("a", "b")
        short = CacheConfig(1_000)
        await manager.get_or_fetch("ADHOC", fetcher, short)
        clock.advance(1_000)
        assert await manager.get_or_fetch("ADHOC", fetcher, short) == "b"

    async def test_unencodable_value_returned_but_not_stored(self, manager, store) -> None:
        value = {"at": object()}
        assert await manager.get_or_fetch(PROFILE, CountingFetcher(value), user_id="u1") is value
        assert len(store) == 0

    async def test_monitor_records_hits_and_misses(self, manager, monitor) -> None:
        fetcher = CountingFetcher("x")
        for _ in range(4):
            await manager.get_or_fetch(PROFILE, fetcher, user_id="u1")
        assert monitor.get_cache_efficiency("USER_PROFILE") == 75.0

    async def test_separator_in_scope_is_config_error(self, manager) -> None:
        with pytest.raises(CacheConfigError):
            await manager.set(PROFILE, 1, user_id="a:b")


class TestScoping:
    async def test_users_do_not_share_entries(self, manager) -> None:
        await manager.set(PROFILE, "alice", user_id="u1")
        await manager.set(PROFILE, "bob", user_id="u2")
        assert await manager.get(PROFILE, user_id="u1") == "alice"
        assert await manager.get(PROFILE, user_id="u2") == "bob"
        assert await manager.get(PROFILE) is None

    async def test_scope_order_irrelevant(self, manager) -> None:
        await manager.set(CacheResource.CLASS_LIST, [1], user_id="u1", school_id="s1")
        assert await manager.get(CacheResource.CLASS_LIST, school_id="s1", user_id="u1") == [1]

    async def test_remove(self, manager) -> None:
        await manager.set(PROFILE, "x", user_id="u1")
        assert await manager.remove(PROFILE, user_id="u1") is True
        assert await manager.remove(PROFILE, user_id="u1") is True
        assert await manager.get(PROFILE, user_id="u1") is None


class TestClears:
    async def test_clear_user_matches_exact_id(self, manager) -> None:
        await manager.set(PROFILE, "one", user_id="u1")
        await manager.set(PROFILE, "ten", user_id="u10")
        await manager.set(CacheResource.CLASS_LIST, [1], user_id="u1", school_id="s1")
        await manager.set(CacheResource.SCHOOL_INFO, {"n": 1}, school_id="s1")

        result = await manager.clear_user_cache("u1")
        assert result.ok
        assert result.removed_count == 2
        assert await manager.get(PROFILE, user_id="u10") == "ten"
        assert await manager.get(CacheResource.SCHOOL_INFO, school_id="s1") == {"n": 1}

    async def test_clear_tenant(self, manager) -> None:
        await manager.set(CacheResource.SCHOOL_INFO, 1, school_id="s1")
        await manager.set(CacheResource.CLASS_LIST, 2, tenant_id="s1")
        await manager.set(CacheResource.CLASS_LIST, 3, school_id="s2")
        result = await manager.clear_tenant_cache("s1")
        assert result.removed_count == 2
        assert await manager.get(CacheResource.CLASS_LIST, school_id="s2") == 3

    async def test_clear_all_leaves_foreign_keys(self, manager, store) -> None:
        await store.write("other-app:k", "keep")
        await manager.set(PROFILE, 1, user_id="u1")
        await manager.set(CacheResource.LESSON_PLANS, 2, CacheConfig(1_000, "sms-teacher"))
        result = await manager.clear_all()
        assert result.removed_count == 2
        assert await store.list_keys() == ["other-app:k"]

    async def test_clear_all_leaves_keys_sharing_prefix_text(self, manager, store) -> None:
        await store.write("smsarchive:report", "keep")
        await manager.set(PROFILE, 1, user_id="u1")
        result = await manager.clear_all()
        assert result.removed == ("sms:USER_PROFILE:user_id=u1",)
        assert await store.list_keys() == ["smsarchive:report"]

    async def test_clear_all_removes_malformed_owned_keys(self, manager, store) -> None:
        await store.write("sms:BROKEN:noequals", "x")
        result = await manager.clear_all()
        assert result.removed == ("sms:BROKEN:noequals",)

    async def test_clear_user_ignores_foreign_namespace(self, manager, store) -> None:
        await store.write("smsarchive:USER_PROFILE:user_id=u1", "keep")
        await manager.set(PROFILE, 1, user_id="u1")
        result = await manager.clear_user_cache("u1")
        assert result.removed_count == 1
        assert await store.list_keys() == ["smsarchive:USER_PROFILE:user_id=u1"]


class TestClearFailures:
    """Bulk clears report keys that could not be deleted instead of raising."""

    async def test_clear_user_reports_failed_key(self, clock) -> None:
        stuck = "sms:USER_PROFILE:user_id=u1"
        manager = FallbackCacheManager(StickyStore(stuck), clock=clock)
        await manager.set(PROFILE, "alice", user_id="u1")
        await manager.set(CacheResource.CLASS_LIST, [1], user_id="u1", school_id="s1")
        await manager.set(PROFILE, "bob", user_id="u2")

        result = await manager.clear_user_cache("u1")
        assert result.ok is False
        assert result.failed == (stuck,)
        assert result.removed == ("sms:CLASS_LIST:school_id=s1:user_id=u1",)
        assert await manager.get(PROFILE, user_id="u2") == "bob"

    async def test_clear_all_reports_failed_key(self, clock) -> None:
        stuck = "sms:SCHOOL_INFO:school_id=s1"
        manager = FallbackCacheManager(StickyStore(stuck), clock=clock)
        await manager.set(CacheResource.SCHOOL_INFO, 1, school_id="s1")
        await manager.set(PROFILE, 2, user_id="u1")

        result = await manager.clear_all()
        assert result.ok is False
        assert result.failed == (stuck,)
        assert result.removed_count == 1
        assert await manager.store.list_keys() == [stuck]

    async def test_clear_reports_listing_failure(self, clock) -> None:
        class UnlistableStore(InMemoryKeyValueStore):
            async def iter_keys(self, prefix: str = ""):
                raise StorageError("list", prefix, "backend down")
                yield  # pragma: no cover

        manager = FallbackCacheManager(UnlistableStore(), clock=clock)
        result = await manager.clear_user_cache("u1")
        assert result.ok is False
        assert result.failed == ("sms",)


class TestStatsAndCleanup:
    async def test_empty_stats(self, manager) -> None:
        stats = await manager.get_stats()
        assert stats.total_keys == 0
        assert stats.approx_size_description == "0 bytes"
        assert stats.is_network_online is True

    async def test_stats_count_keys_bytes_and_expired(self, manager, store, clock) -> None:
        await manager.set(CacheResource.DASHBOARD_STATS, {"a": 1}, user_id="u1")
        await manager.set(CacheResource.SCHOOL_INFO, {"b": 2}, school_id="s1")
        await store.write("sms:BROKEN", "garbage")
        clock.advance(180_000)

        stats = await manager.get_stats()
        raws = [await store.read(key) for key in await store.list_keys()]
        expected_bytes = sum(len(raw.encode("utf-8")) for raw in raws)
        assert stats.total_keys == 3
        assert stats.total_size_bytes == expected_bytes
        assert stats.expired_keys == 2

    async def test_stats_skip_foreign_namespace(self, manager, store) -> None:
        await store.write("smsarchive:report", "not ours")
        await manager.set(PROFILE, 1, user_id="u1")
        stats = await manager.get_stats()
        assert stats.total_keys == 1
        assert stats.expired_keys == 0
        assert (await manager.cleanup_expired()).removed_count == 0
        assert "smsarchive:report" in await store.list_keys()

    async def test_offline_probe(self, store, clock) -> None:
        manager = FallbackCacheManager(
            store, clock=clock, probe=StaticConnectivityProbe(online=False)
        )
        assert (await manager.get_stats()).is_network_online is False

    async def test_probe_exception_reports_offline(self, store, clock) -> None:
        class ExplodingProbe(StaticConnectivityProbe):
            async def is_connected(self) -> bool:
                raise RuntimeError("no network stack")

        manager = FallbackCacheManager(store, clock=clock, probe=ExplodingProbe())
        assert (await manager.get_stats()).is_network_online is False

    async def test_cleanup_removes_only_dead_entries(self, manager, store, clock) -> None:
        await manager.set(CacheResource.DASHBOARD_STATS, 1, user_id="u1")
        await manager.set(CacheResource.SCHOOL_INFO, 2, school_id="s1")
        await store.write("sms:BROKEN", "garbage")
        clock.advance(180_000)

        result = await manager.cleanup_expired()
        assert result.removed_count == 2
        assert result.freed_bytes > len("garbage")
        assert await manager.get(CacheResource.SCHOOL_INFO, school_id="s1") == 2
        assert await manager.cleanup_expired() == CleanupResult()


class TestBatch:
    async def test_batch_set_and_get(self, manager) -> None:
        written = await manager.batch_set(
            [
                BatchEntry(PROFILE, {"user_id": "u1"}, "alice"),
                BatchEntry(CacheResource.CLASS_LIST, {"school_id": "s1"}, [1, 2]),
                BatchEntry("ADHOC", {}, 5, CacheConfig(10)),
            ]
        )
        assert written == 3

        results = await manager.batch_get(
            [
                BatchEntry(CacheResource.CLASS_LIST, {"school_id": "s1"}),
                BatchEntry(PROFILE, {"user_id": "missing"}),
                BatchEntry(PROFILE, {"user_id": "u1"}),
            ]
        )
        assert [r.logical_name for r in results] == ["CLASS_LIST", "USER_PROFILE", "USER_PROFILE"]
        assert [r.hit for r in results] == [True, False, True]
        assert results[0].value == [1, 2]
        assert results[2].value == "alice"
        assert results[1].scope == {"user_id": "missing"}


class TestFormatBytes:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [(0, "0 bytes"), (512, "512 bytes"), (1536, "1.5 KB"), (1024 * 1024, "1 MB")],
    )
    def test_format(self, size, expected) -> None:
        assert format_bytes(size) == expected
