"""Cache health monitoring and management endpoints.

GET reports hit efficiency (short or detailed form); POST clears tags and
paths on the tagged cache or runs the registered warm-up jobs.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Query

from school_cache.api.v1.dependencies import CacheContainerDep
from school_cache.domain.enums import CacheAction
from school_cache.domain.exceptions import ValidationException
from school_cache.schemas.cache import (
    CacheClearResponse,
    CacheConfigurationSchema,
    CacheHealthResponse,
    CacheManagementRequest,
    CachePerformance,
    CacheWarmResponse,
    HealthCheckSchema,
    HealthDetail,
    HealthSummary,
    LocalStoreSchema,
    ResourcePolicySchema,
    StatisticsSchema,
    SystemHealthSchema,
    describe_layers,
)
from school_cache.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_ACTION_MESSAGE = 'Invalid action. Use "clear" or "warm"'


@router.get("", response_model=CacheHealthResponse)
async def get_cache_health(
    container: CacheContainerDep,
    detailed: bool = Query(False, description="Include statistics, store and configuration"),
) -> CacheHealthResponse:
    """Return cache health; detailed=true adds statistics and configuration."""
    monitor = container.monitor
    check = monitor.get_health_check()
    if not detailed:
        return CacheHealthResponse(
            data=HealthSummary(
                status=check.status,
                efficiency=check.efficiency,
                last_checked=check.last_checked,
            )
        )

    statistics = monitor.get_statistics()
    system_health = monitor.get_health_status()
    store_stats = await container.manager.get_stats()
    tagged_stats = container.tagged_cache.stats()

    detail = HealthDetail(
        health=HealthCheckSchema(**asdict(check)),
        statistics=StatisticsSchema(**asdict(statistics)),
        system_health=SystemHealthSchema(**asdict(system_health)),
        local_store=LocalStoreSchema(
            total_keys=store_stats.total_keys,
            cache_size=store_stats.approx_size_description,
            is_online=store_stats.is_network_online,
            total_size_bytes=store_stats.total_size_bytes,
            expired_keys=store_stats.expired_keys,
        ),
        cache_configuration=CacheConfigurationSchema(
            layers=describe_layers(),
            performance=CachePerformance(
                average_response_time=statistics.average_response_time,
                cache_hit_ratio=statistics.cache_efficiency,
                total_caches=system_health.total_caches,
            ),
            resources={
                name: ResourcePolicySchema(
                    ttl_seconds=config.ttl_millis / 1000,
                    priority=config.priority.value,
                )
                for name, config in container.manager.registry.items()
            },
            tagged_cache=asdict(tagged_stats),
        ),
        recommendations=list(check.recommendations),
        timestamp=utc_now(),
    )
    return CacheHealthResponse(data=detail)


@router.post("", response_model=CacheClearResponse | CacheWarmResponse)
async def manage_cache(
    body: CacheManagementRequest,
    container: CacheContainerDep,
) -> CacheClearResponse | CacheWarmResponse:
    """Clear tags/paths on the tagged cache, or run warm-up jobs.

    Raises:
        ValidationException: Unknown action (400).
    """
    try:
        action = CacheAction(body.action)
    except ValueError:
        raise ValidationException(INVALID_ACTION_MESSAGE, field="action") from None

    if action == CacheAction.CLEAR:
        tagged = container.tagged_cache
        cleared: list[str] = []
        invalidated = 0
        for tag in body.tags or []:
            invalidated += tagged.invalidate_tag(tag)
            cleared.append(f"tag:{tag}")
        for path in body.paths or []:
            invalidated += tagged.invalidate_path(path)
            cleared.append(f"path:{path}")
        logger.info("Cache clear requested: %s items", len(cleared))
        return CacheClearResponse(
            message=f"Cache cleared for {len(cleared)} items",
            cleared_items=cleared,
            invalidated_entries=invalidated,
            timestamp=utc_now(),
        )

    result = await container.warmer.warm(body.jobs)
    return CacheWarmResponse(
        warmed=list(result.warmed),
        failed=list(result.failed),
        timestamp=utc_now(),
    )
