"""Tests for CacheMonitor metrics, health status and health check."""

from datetime import UTC, datetime

import pytest

from school_cache.domain.enums import HealthState
from school_cache.infrastructure.cache.monitor import CacheMonitor

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def monitor() -> CacheMonitor:
    return CacheMonitor(clock=lambda: FIXED_NOW)


class TestRecording:
    def test_hits_and_misses(self, monitor) -> None:
        monitor.record_hit("students", 10)
        monitor.record_hit("students", 20)
        monitor.record_miss("students", 30)
        metrics = monitor.get_metrics("students")
        assert (metrics.hits, metrics.misses, metrics.total) == (2, 1, 3)
        assert metrics.last_updated == FIXED_NOW

    def test_running_average_halves_toward_sample(self, monitor) -> None:
        monitor.record_hit("k", 100)
        assert monitor.get_metrics("k").average_response_time == 50
        monitor.record_hit("k", 100)
        assert monitor.get_metrics("k").average_response_time == 75

    def test_unknown_key_zeroed(self, monitor) -> None:
        metrics = monitor.get_metrics("nothing")
        assert metrics.total == 0
        assert monitor.get_cache_efficiency("nothing") == 0.0

    def test_metrics_are_copies(self, monitor) -> None:
        monitor.record_hit("k", 1)
        monitor.get_metrics("k").hits = 99
        assert monitor.get_metrics()["k"].hits == 1

    def test_efficiency(self, monitor) -> None:
        for _ in range(3):
            monitor.record_hit("k", 1)
        monitor.record_miss("k", 1)
        assert monitor.get_cache_efficiency("k") == 75.0


class TestHealth:
    def test_health_status_lists_unhealthy(self, monitor) -> None:
        monitor.record_hit("good", 10)
        monitor.record_miss("bad", 10)
        status = monitor.get_health_status()
        assert status.total_caches == 2
        assert status.average_hit_rate == 50.0
        assert status.unhealthy_caches == ("bad",)

    def test_empty_health_status(self, monitor) -> None:
        status = monitor.get_health_status()
        assert status.total_caches == 0
        assert status.average_hit_rate == 0.0

    @pytest.mark.parametrize(
        ("hits", "misses", "state"),
        [(3, 1, HealthState.HEALTHY), (3, 2, HealthState.WARNING), (1, 1, HealthState.UNHEALTHY)],
    )
    def test_thresholds(self, monitor, hits, misses, state) -> None:
        for _ in range(hits):
            monitor.record_hit("k", 1)
        for _ in range(misses):
            monitor.record_miss("k", 1)
        assert monitor.get_health_check().status == state

    def test_no_traffic_is_unhealthy(self, monitor) -> None:
        check = monitor.get_health_check()
        assert check.status == HealthState.UNHEALTHY
        assert check.efficiency == "0.00%"
        assert check.average_response_time == "0.00ms"

    def test_formatted_figures(self, monitor) -> None:
        monitor.record_hit("a", 10)
        monitor.record_hit("a", 10)
        monitor.record_miss("b", 400)
        check = monitor.get_health_check()
        assert check.efficiency == "66.67%"
        assert check.total_requests == 3
        assert check.average_response_time == "103.75ms"

    def test_recommendations(self, monitor) -> None:
        monitor.record_miss("slow", 1000)
        recommendations = monitor.get_health_check().recommendations
        assert recommendations == (
            "Consider increasing cache duration for frequently accessed data",
            "Optimize database queries and consider adding more caching layers",
            "Review cache invalidation strategy to reduce unnecessary cache misses",
        )

    def test_optimal(self, monitor) -> None:
        monitor.record_hit("k", 1)
        assert monitor.get_health_check().recommendations == ("Cache performance is optimal",)

    def test_reset(self, monitor) -> None:
        monitor.record_hit("k", 1)
        monitor.reset()
        assert monitor.get_statistics().total_requests == 0
