"""Cached queries over the fallback cache manager.

CachedQuery holds data / loading / error state for one resource and
scope, with refetch, set_cache and clear_cache. CachedApiService wraps
API calls for a signed-in user and reports whether data came from cache.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from school_cache.domain.exceptions import FetchError
from school_cache.domain.value_objects import CacheConfig
from school_cache.infrastructure.cache.fallback_manager import FallbackCacheManager
from school_cache.infrastructure.cache.registry import ResourceName, resource_name

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CachedQuery(Generic[T]):
    """Cache-first loader for one resource and scope.

    Fetcher failures are not raised; they are kept on .error as a
    FetchError whose __cause__ is the original exception.
    """

    def __init__(
        self,
        manager: FallbackCacheManager,
        resource: ResourceName,
        fetcher: Callable[[], Awaitable[T]],
        *,
        config: CacheConfig | None = None,
        enabled: bool = True,
        **scope: Any,
    ) -> None:
        self.manager = manager
        self.resource = resource
        self.fetcher = fetcher
        self.enabled = enabled
        self.scope = scope
        # Resolve eagerly so an unregistered resource fails at construction.
        self.config = config if config is not None else manager.registry.get(resource)
        self.data: T | None = None
        self.is_loading = False
        self.error: FetchError | None = None
        self.from_cache = False

    async def refetch(self, force_refresh: bool = False) -> T | None:
        """Load from cache, or from the fetcher on a miss, and update state."""
        if not self.enabled:
            return self.data
        self.is_loading = True
        self.error = None
        try:
            if not force_refresh:
                found = await self.manager.lookup(self.resource, self.config, **self.scope)
                if found.hit:
                    self.data = found.value
                    self.from_cache = True
                    return self.data

            logger.debug("Fetching fresh data for %s", resource_name(self.resource))
            try:
                fresh = await self.fetcher()
            except Exception as e:
                error = FetchError(resource_name(self.resource), e)
                error.__cause__ = e
                self.error = error
                logger.warning("Cache fetch error for %s: %s", error.details["resource"], e)
                return None
            await self.manager.set(self.resource, fresh, self.config, **self.scope)
            self.data = fresh
            self.from_cache = False
            return fresh
        finally:
            self.is_loading = False

    async def set_cache(self, value: T) -> bool:
        stored = await self.manager.set(self.resource, value, self.config, **self.scope)
        self.data = value
        return stored

    async def clear_cache(self) -> bool:
        removed = await self.manager.remove(self.resource, self.config, **self.scope)
        self.data = None
        return removed


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """Result of a cached API call."""

    data: T | None
    error: str | None
    from_cache: bool


class CachedApiService:
    """Cache-first API calls scoped to the signed-in user and school."""

    def __init__(self, manager: FallbackCacheManager) -> None:
        self.manager = manager
        self.user_id: str | None = None
        self.school_id: str | None = None

    def initialize(self, user_id: str, school_id: str | None = None) -> None:
        """Set the user context used to scope every cached call."""
        self.user_id = user_id
        self.school_id = school_id
        logger.info("Cached API service initialized for user %s", user_id)

    def _scope(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "school_id": self.school_id}

    async def cached_api_call(
        self,
        resource: ResourceName,
        api_call: Callable[[], Awaitable[T]],
        force_refresh: bool = False,
    ) -> ApiResponse[T]:
        """Return cached data when fresh, else call the API and cache its result.

        Raises:
            CacheConfigError: If resource has no registered config.
        """
        config = self.manager.registry.get(resource)
        scope = self._scope()
        if not force_refresh:
            found = await self.manager.lookup(resource, config, **scope)
            if found.hit:
                return ApiResponse(data=found.value, error=None, from_cache=True)

        try:
            data = await api_call()
        except Exception as e:
            logger.error("API call failed for %s: %s", resource_name(resource), e)
            return ApiResponse(data=None, error=str(e) or type(e).__name__, from_cache=False)
        await self.manager.set(resource, data, config, **scope)
        return ApiResponse(data=data, error=None, from_cache=False)

    async def clear_user_cache(self) -> int:
        """Remove every entry for the current user; returns how many were removed."""
        if self.user_id is None:
            return 0
        result = await self.manager.clear_user_cache(self.user_id)
        return result.removed_count
