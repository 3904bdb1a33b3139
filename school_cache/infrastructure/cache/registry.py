"""Per-resource cache configuration registry.

Exactly one CacheConfig per logical resource. Lookups of unknown
resources fail fast with CacheConfigError instead of silently caching
with a default policy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from school_cache.domain.enums import CachePriority, CacheResource
from school_cache.domain.exceptions import CacheConfigError
from school_cache.domain.value_objects import CacheConfig

logger = logging.getLogger(__name__)

ResourceName = CacheResource | str

# Default policies for the mobile/offline cache (TTL in seconds).
DEFAULT_CACHE_CONFIGS: dict[CacheResource, CacheConfig] = {
    # Real-time data
    CacheResource.USER_PROFILE: CacheConfig.from_seconds(300, priority=CachePriority.HIGH),
    CacheResource.DASHBOARD_STATS: CacheConfig.from_seconds(180, priority=CachePriority.HIGH),
    CacheResource.TODAY_CLASSES: CacheConfig.from_seconds(300, priority=CachePriority.HIGH),
    # Semi-static data
    CacheResource.CLASS_LIST: CacheConfig.from_seconds(1800, priority=CachePriority.MEDIUM),
    CacheResource.STUDENT_LIST: CacheConfig.from_seconds(1800, priority=CachePriority.MEDIUM),
    CacheResource.ASSIGNMENT_LIST: CacheConfig.from_seconds(1800, priority=CachePriority.MEDIUM),
    # Static data
    CacheResource.SCHOOL_INFO: CacheConfig.from_seconds(7200, priority=CachePriority.LOW),
    CacheResource.USER_PERMISSIONS: CacheConfig.from_seconds(3600, priority=CachePriority.LOW),
    # Teacher data
    CacheResource.TEACHER_DATA: CacheConfig.from_seconds(900, priority=CachePriority.HIGH),
    CacheResource.LESSON_PLANS: CacheConfig.from_seconds(1800, priority=CachePriority.MEDIUM),
    CacheResource.BEHAVIORAL_NOTES: CacheConfig.from_seconds(600, priority=CachePriority.MEDIUM),
    CacheResource.ATTENDANCE_DATA: CacheConfig.from_seconds(300, priority=CachePriority.HIGH),
}


def resource_name(resource: ResourceName) -> str:
    """Return the logical name used in storage keys for resource."""
    if isinstance(resource, CacheResource):
        return resource.value
    return str(resource)


class CacheConfigRegistry:
    """Mapping of logical resource name to its CacheConfig."""

    def __init__(self) -> None:
        self._configs: dict[str, CacheConfig] = {}

    def register(self, resource: ResourceName, config: CacheConfig) -> None:
        """Register config for resource.

        Raises:
            CacheConfigError: If resource is already registered or config is not a CacheConfig.
        """
        name = resource_name(resource)
        if not isinstance(config, CacheConfig):
            raise CacheConfigError(
                f"Config for {name} must be a CacheConfig, got {type(config).__name__}",
                resource=name,
            )
        if name in self._configs:
            raise CacheConfigError(f"Cache config already registered: {name}", resource=name)
        self._configs[name] = config
        logger.debug("Registered cache config %s (ttl=%sms)", name, config.ttl_millis)

    def get(self, resource: ResourceName) -> CacheConfig:
        """Return the config for resource.

        Raises:
            CacheConfigError: If resource was never registered.
        """
        name = resource_name(resource)
        config = self._configs.get(name)
        if config is None:
            raise CacheConfigError(f"No cache config registered for {name}", resource=name)
        return config

    def items(self) -> list[tuple[str, CacheConfig]]:
        return list(self._configs.items())

    def __contains__(self, resource: object) -> bool:
        if not isinstance(resource, (CacheResource, str)):
            return False
        return resource_name(resource) in self._configs

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)


def default_registry() -> CacheConfigRegistry:
    """Return a new registry with every CacheResource registered at its default policy."""
    registry = CacheConfigRegistry()
    for resource, config in DEFAULT_CACHE_CONFIGS.items():
        registry.register(resource, config)
    return registry
