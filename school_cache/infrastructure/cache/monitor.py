"""Cache performance monitoring: per-key hit/miss counters and health summaries.

Observational only. Nothing here feeds back into caching decisions.
The running average is (previous + sample) / 2 starting from 0, so it
weights recent samples heavily; it is not an arithmetic mean.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime

from school_cache.domain.enums import HealthState
from school_cache.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

HEALTHY_EFFICIENCY = 70.0
WARNING_EFFICIENCY = 50.0
SLOW_RESPONSE_MS = 200.0


@dataclass
class CacheMetrics:
    """Counters for one monitored cache key."""

    hits: int = 0
    misses: int = 0
    average_response_time: float = 0.0
    cache_size: int = 0
    last_updated: datetime = field(default_factory=utc_now)

    @property
    def total(self) -> int:
        return self.hits + self.misses


@dataclass(frozen=True)
class CacheHealthStatus:
    """Per-key health summary across all monitored caches."""

    total_caches: int
    average_hit_rate: float
    average_response_time: float
    unhealthy_caches: tuple[str, ...]
    last_checked: datetime


@dataclass(frozen=True)
class CacheStatistics:
    """Totals across all monitored caches."""

    total_requests: int
    cache_hits: int
    cache_misses: int
    average_response_time: float
    cache_efficiency: float
    last_updated: datetime


@dataclass(frozen=True)
class CacheHealthCheck:
    """Overall status with formatted figures and recommendations."""

    status: HealthState
    efficiency: str
    total_requests: int
    cache_hits: int
    cache_misses: int
    average_response_time: str
    recommendations: tuple[str, ...]
    last_checked: datetime


class CacheMonitor:
    """In-process hit/miss recorder keyed by cache name.

    Args:
        clock: Returns the current UTC datetime (injectable for tests).
        unhealthy_threshold: Per-key efficiency (%) below which a cache is unhealthy.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        unhealthy_threshold: float = WARNING_EFFICIENCY,
    ) -> None:
        self._clock = clock
        self.unhealthy_threshold = unhealthy_threshold
        self._metrics: dict[str, CacheMetrics] = {}

    def _record(self, cache_key: str, response_time_ms: float, hit: bool) -> None:
        metrics = self._metrics.get(cache_key)
        if metrics is None:
            metrics = CacheMetrics(last_updated=self._clock())
            self._metrics[cache_key] = metrics
        if hit:
            metrics.hits += 1
        else:
            metrics.misses += 1
        metrics.average_response_time = (metrics.average_response_time + response_time_ms) / 2
        metrics.last_updated = self._clock()

    def record_hit(self, cache_key: str, response_time_ms: float) -> None:
        self._record(cache_key, response_time_ms, hit=True)

    def record_miss(self, cache_key: str, response_time_ms: float) -> None:
        self._record(cache_key, response_time_ms, hit=False)

    def get_metrics(
        self, cache_key: str | None = None
    ) -> CacheMetrics | dict[str, CacheMetrics]:
        """Return a copy of one key's metrics (zeroed if unknown) or of all metrics."""
        if cache_key is not None:
            metrics = self._metrics.get(cache_key)
            if metrics is None:
                return CacheMetrics(last_updated=self._clock())
            return replace(metrics)
        return {key: replace(metrics) for key, metrics in self._metrics.items()}

    def get_cache_efficiency(self, cache_key: str) -> float:
        """Hit percentage for cache_key; 0 when nothing was recorded."""
        metrics = self._metrics.get(cache_key)
        if metrics is None or metrics.total == 0:
            return 0.0
        return metrics.hits / metrics.total * 100

    def get_health_status(self) -> CacheHealthStatus:
        total_hit_rate = 0.0
        total_response_time = 0.0
        unhealthy: list[str] = []
        for key, metrics in self._metrics.items():
            efficiency = self.get_cache_efficiency(key)
            total_hit_rate += efficiency
            total_response_time += metrics.average_response_time
            if efficiency < self.unhealthy_threshold:
                unhealthy.append(key)
        count = len(self._metrics)
        return CacheHealthStatus(
            total_caches=count,
            average_hit_rate=total_hit_rate / count if count else 0.0,
            average_response_time=total_response_time / count if count else 0.0,
            unhealthy_caches=tuple(unhealthy),
            last_checked=self._clock(),
        )

    def get_statistics(self) -> CacheStatistics:
        hits = sum(m.hits for m in self._metrics.values())
        misses = sum(m.misses for m in self._metrics.values())
        total = hits + misses
        count = len(self._metrics)
        response_time = sum(m.average_response_time for m in self._metrics.values())
        return CacheStatistics(
            total_requests=total,
            cache_hits=hits,
            cache_misses=misses,
            average_response_time=response_time / count if count else 0.0,
            cache_efficiency=hits / total * 100 if total else 0.0,
            last_updated=self._clock(),
        )

    def get_health_check(self) -> CacheHealthCheck:
        """Summarize statistics as healthy (>70%), warning (>50%) or unhealthy."""
        stats = self.get_statistics()
        if stats.cache_efficiency > HEALTHY_EFFICIENCY:
            status = HealthState.HEALTHY
        elif stats.cache_efficiency > WARNING_EFFICIENCY:
            status = HealthState.WARNING
        else:
            status = HealthState.UNHEALTHY
        return CacheHealthCheck(
            status=status,
            efficiency=f"{stats.cache_efficiency:.2f}%",
            total_requests=stats.total_requests,
            cache_hits=stats.cache_hits,
            cache_misses=stats.cache_misses,
            average_response_time=f"{stats.average_response_time:.2f}ms",
            recommendations=tuple(_recommendations(stats)),
            last_checked=stats.last_updated,
        )

    def reset(self) -> None:
        self._metrics.clear()
        logger.info("Cache monitor reset")


def _recommendations(stats: CacheStatistics) -> list[str]:
    recommendations: list[str] = []
    if stats.cache_efficiency < WARNING_EFFICIENCY:
        recommendations.append(
            "Consider increasing cache duration for frequently accessed data"
        )
    if stats.average_response_time > SLOW_RESPONSE_MS:
        recommendations.append(
            "Optimize database queries and consider adding more caching layers"
        )
    if stats.cache_misses > stats.cache_hits:
        recommendations.append(
            "Review cache invalidation strategy to reduce unnecessary cache misses"
        )
    if not recommendations:
        recommendations.append("Cache performance is optimal")
    return recommendations
