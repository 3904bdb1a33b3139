"""Composition root for the cache layers.

CacheContainer builds the fallback cache manager, tagged cache, monitor
and warmer from settings. The app lifespan owns one instance; tests
build their own with an in-memory store and a static probe.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from school_cache.application.services.cache_warmer import CacheWarmer
from school_cache.core.config import Settings
from school_cache.infrastructure.cache.codec import EnvelopeCodec
from school_cache.infrastructure.cache.connectivity import (
    ConnectivityProbe,
    HttpConnectivityProbe,
)
from school_cache.infrastructure.cache.fallback_manager import FallbackCacheManager
from school_cache.infrastructure.cache.monitor import CacheMonitor
from school_cache.infrastructure.cache.policy import FreshnessPolicy
from school_cache.infrastructure.cache.registry import CacheConfigRegistry, default_registry
from school_cache.infrastructure.cache.stores.base import KeyValueStore
from school_cache.infrastructure.cache.stores.factory import create_key_value_store
from school_cache.infrastructure.cache.tagged_cache import TaggedCache
from school_cache.shared.utils.datetime import now_millis

logger = logging.getLogger(__name__)


class CacheContainer:
    """Explicitly constructed cache services; call init() before use and dispose() after.

    Args:
        settings: Application settings.
        store: Override the store chosen by settings.cache_store_backend.
        probe: Override the HTTP connectivity probe.
        registry: Override the default resource registry.
        clock: Epoch-milliseconds clock for the fallback cache.
        monotonic: Seconds clock for the tagged cache.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: KeyValueStore | None = None,
        probe: ConnectivityProbe | None = None,
        registry: CacheConfigRegistry | None = None,
        clock: Callable[[], int] = now_millis,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.monitor = CacheMonitor(unhealthy_threshold=settings.monitor_unhealthy_threshold)
        self.store = store if store is not None else create_key_value_store(settings)
        self.manager = FallbackCacheManager(
            self.store,
            registry=registry if registry is not None else default_registry(),
            codec=EnvelopeCodec(),
            policy=FreshnessPolicy(settings.cache_schema_version),
            probe=probe
            if probe is not None
            else HttpConnectivityProbe(
                settings.connectivity_check_url,
                timeout_seconds=settings.connectivity_timeout_seconds,
            ),
            clock=clock,
            key_prefix=settings.cache_key_prefix,
            monitor=self.monitor,
        )
        self.tagged_cache = TaggedCache(
            clock=monotonic,
            monitor=self.monitor,
            default_ttl_seconds=settings.tagged_cache_default_ttl_seconds,
            max_entries=settings.tagged_cache_max_entries,
        )
        self.warmer = CacheWarmer()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> None:
        if self._initialized:
            return
        await self.manager.init()
        self._initialized = True
        logger.info("Cache container initialized")

    async def dispose(self) -> None:
        if not self._initialized:
            return
        await self.manager.dispose()
        self.tagged_cache.clear()
        self._initialized = False
        logger.info("Cache container disposed")
