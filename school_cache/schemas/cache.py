"""Cache health and management API schemas.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from school_cache.domain.enums import HealthState


class CamelModel(BaseModel):
    """Base schema serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class HealthSummary(CamelModel):
    """Short cache health returned by GET /cache-health."""

    status: HealthState
    efficiency: str
    last_checked: datetime


class HealthCheckSchema(CamelModel):
    status: HealthState
    efficiency: str
    total_requests: int
    cache_hits: int
    cache_misses: int
    average_response_time: str
    recommendations: list[str]
    last_checked: datetime


class StatisticsSchema(CamelModel):
    total_requests: int
    cache_hits: int
    cache_misses: int
    average_response_time: float
    cache_efficiency: float
    last_updated: datetime


class SystemHealthSchema(CamelModel):
    total_caches: int
    average_hit_rate: float
    average_response_time: float
    unhealthy_caches: list[str]
    last_checked: datetime


class LocalStoreSchema(CamelModel):
    """Fallback cache store statistics."""

    total_keys: int
    cache_size: str
    is_online: bool
    total_size_bytes: int
    expired_keys: int


class CacheLayer(CamelModel):
    enabled: bool = True
    description: str


class CachePerformance(CamelModel):
    average_response_time: float
    cache_hit_ratio: float
    total_caches: int


class ResourcePolicySchema(CamelModel):
    ttl_seconds: float
    priority: str


class CacheConfigurationSchema(CamelModel):
    layers: dict[str, CacheLayer]
    performance: CachePerformance
    resources: dict[str, ResourcePolicySchema]
    tagged_cache: dict[str, int]


class HealthDetail(CamelModel):
    """Detailed cache health returned by GET /cache-health?detailed=true."""

    health: HealthCheckSchema
    statistics: StatisticsSchema
    system_health: SystemHealthSchema
    local_store: LocalStoreSchema
    cache_configuration: CacheConfigurationSchema
    recommendations: list[str]
    timestamp: datetime


class CacheHealthResponse(CamelModel):
    success: bool = True
    data: HealthDetail | HealthSummary


class CacheManagementRequest(CamelModel):
    """Body of POST /cache-health.

    action is validated by the endpoint so an unknown action gets the
    domain VALIDATION_ERROR response rather than a 422.
    """

    action: str
    tags: list[str] | None = None
    paths: list[str] | None = None
    jobs: list[str] | None = None


class CacheClearResponse(CamelModel):
    success: bool = True
    message: str
    cleared_items: list[str]
    invalidated_entries: int
    timestamp: datetime


class CacheWarmResponse(CamelModel):
    success: bool = True
    message: Literal["Cache warming initiated"] = "Cache warming initiated"
    warmed: list[str]
    failed: list[str]
    timestamp: datetime


def describe_layers() -> dict[str, Any]:
    """Static description of the cache layers served by this service."""
    return {
        "requestMemoization": {
            "enabled": True,
            "description": "Per-request deduplication of identical async calls",
        },
        "dataCache": {
            "enabled": True,
            "description": "Tag-based server data cache with time-based revalidation",
        },
        "fallbackCache": {
            "enabled": True,
            "description": "Persistent local cache with TTL and schema versioning",
        },
    }
