"""Fallback cache manager: device-local/offline cache with TTL and schema versioning.

Reads a raw record, decodes it, classifies it (fresh / stale / version
mismatch) and either returns the value or calls the caller's fetcher and
stores the result. Storage failures degrade to a miss or a no-op and are
logged; only CacheConfigError and fetcher exceptions escape.

Keys: <prefix>:<logical_name>[:<scope>=<value>...] (see CacheKey).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from school_cache.core.constants import (
    CACHE_KEY_PREFIX,
    CACHE_KEY_SEP,
    SCOPE_USER_ID,
    TENANT_SCOPE_NAMES,
)
from school_cache.domain.entities import (
    BatchEntry,
    BatchGetResult,
    CacheEnvelope,
    CacheLookup,
    CacheStats,
    CleanupResult,
    ClearResult,
)
from school_cache.domain.enums import Freshness, LookupStatus
from school_cache.domain.exceptions import CacheCodecError, CacheConfigError
from school_cache.domain.value_objects import CacheConfig, CacheKey, in_namespace
from school_cache.infrastructure.cache.codec import EnvelopeCodec
from school_cache.infrastructure.cache.connectivity import (
    ConnectivityProbe,
    StaticConnectivityProbe,
)
from school_cache.infrastructure.cache.keys import storage_key
from school_cache.infrastructure.cache.monitor import CacheMonitor
from school_cache.infrastructure.cache.policy import FreshnessPolicy
from school_cache.infrastructure.cache.registry import (
    CacheConfigRegistry,
    ResourceName,
    default_registry,
    resource_name,
)
from school_cache.infrastructure.cache.stores.base import KeyValueStore
from school_cache.infrastructure.exceptions import StorageError
from school_cache.shared.telemetry.tracing import traced
from school_cache.shared.utils.datetime import now_millis

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SIZE_UNITS = ("bytes", "KB", "MB", "GB")


def format_bytes(num_bytes: int) -> str:
    """Human-readable size: 0 -> "0 bytes", 1536 -> "1.5 KB"."""
    if num_bytes <= 0:
        return "0 bytes"
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{round(size, 2):g} {_SIZE_UNITS[unit]}"


class FallbackCacheManager:
    """Persistent local cache over a KeyValueStore.

    Constructed explicitly (no module-level instance). Call init() before
    use and dispose() at shutdown.

    Args:
        store: Key-value backend.
        registry: Per-resource policies; defaults to default_registry().
        codec: Envelope codec.
        policy: Freshness policy; its schema version is written into new envelopes.
        probe: Network reachability probe (stats only).
        clock: Returns the current time in epoch milliseconds.
        key_prefix: Root namespace of every key this manager owns.
        monitor: Optional hit/miss recorder for get_or_fetch.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        registry: CacheConfigRegistry | None = None,
        codec: EnvelopeCodec | None = None,
        policy: FreshnessPolicy | None = None,
        probe: ConnectivityProbe | None = None,
        clock: Callable[[], int] = now_millis,
        key_prefix: str = CACHE_KEY_PREFIX,
        monitor: CacheMonitor | None = None,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else default_registry()
        self.codec = codec or EnvelopeCodec()
        self.policy = policy or FreshnessPolicy(current_schema_version=1)
        self.probe: ConnectivityProbe = probe or StaticConnectivityProbe(online=True)
        self.key_prefix = key_prefix
        self.monitor = monitor
        self._clock = clock

    async def init(self) -> None:
        """Open the backing store."""
        await self.store.open()
        logger.info(
            "Fallback cache ready (store=%s, prefix=%s, schema=%s)",
            type(self.store).__name__,
            self.key_prefix,
            self.policy.current_schema_version,
        )

    async def dispose(self) -> None:
        """Close the store and the connectivity probe."""
        await self.store.close()
        await self.probe.aclose()

    # ------------------------------------------------------------------
    # Keys and configs
    # ------------------------------------------------------------------

    def _resolve(
        self, resource: ResourceName, config: CacheConfig | None
    ) -> tuple[str, CacheConfig]:
        name = resource_name(resource)
        return name, config if config is not None else self.registry.get(name)

    def _storage_key(self, name: str, config: CacheConfig, scope: dict[str, Any]) -> str:
        try:
            return storage_key(name, config, self.key_prefix, **scope)
        except ValueError as e:
            raise CacheConfigError(str(e), resource=name) from e

    async def _discard(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except StorageError as e:
            logger.debug("Could not discard %s: %s", key, e.message)

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    async def _lookup_key(self, key: str) -> CacheLookup[Any]:
        try:
            raw = await self.store.read(key)
        except StorageError as e:
            logger.warning("Cache read failed for %s: %s", key, e.message)
            return CacheLookup(LookupStatus.STORAGE_ERROR)
        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return CacheLookup(LookupStatus.MISS)

        decoded = self.codec.decode(raw)
        if decoded.is_err():
            logger.warning("Cache CORRUPT: %s (%s)", key, decoded.unwrap_err().message)
            await self._discard(key)
            return CacheLookup(LookupStatus.DECODE_ERROR)

        envelope = decoded.unwrap()
        freshness = self.policy.classify(envelope, self._clock())
        if freshness == Freshness.FRESH:
            logger.debug("Cache HIT: %s", key)
            return CacheLookup(LookupStatus.HIT, envelope.value)
        if freshness == Freshness.VERSION_MISMATCH:
            logger.info(
                "Cache VERSION MISMATCH: %s (stored=%s)", key, envelope.schema_version
            )
            await self._discard(key)
            return CacheLookup(LookupStatus.VERSION_MISMATCH)
        logger.debug("Cache EXPIRED: %s", key)
        await self._discard(key)
        return CacheLookup(LookupStatus.STALE)

    async def lookup(
        self, resource: ResourceName, config: CacheConfig | None = None, **scope: Any
    ) -> CacheLookup[Any]:
        """Read one entry and report exactly what was found.

        Stale, mismatched and corrupt records are deleted best-effort.
        """
        name, cfg = self._resolve(resource, config)
        return await self._lookup_key(self._storage_key(name, cfg, scope))

    async def get(
        self, resource: ResourceName, config: CacheConfig | None = None, **scope: Any
    ) -> Any | None:
        """Return the cached value if fresh, else None.

        A cached None is indistinguishable from a miss here; use lookup().
        """
        result = await self.lookup(resource, config, **scope)
        return result.value if result.hit else None

    @traced("fallback_cache.get_or_fetch")
    async def get_or_fetch(
        self,
        resource: ResourceName,
        fetcher: Callable[[], Awaitable[T]],
        config: CacheConfig | None = None,
        *,
        force_refresh: bool = False,
        **scope: Any,
    ) -> T:
        """Return the fresh cached value, or fetch, store and return it.

        The fetcher is awaited at most once. Its exceptions propagate
        unchanged and nothing is stored. force_refresh skips the read.
        """
        name, cfg = self._resolve(resource, config)
        key = self._storage_key(name, cfg, scope)
        started = time.perf_counter()

        if not force_refresh:
            found = await self._lookup_key(key)
            if found.hit:
                self._observe(name, started, hit=True)
                return found.value

        try:
            value = await fetcher()
        finally:
            self._observe(name, started, hit=False)
        await self._write(key, value, cfg)
        return value

    def _observe(self, name: str, started: float, hit: bool) -> None:
        if self.monitor is None:
            return
        elapsed_ms = (time.perf_counter() - started) * 1000
        if hit:
            self.monitor.record_hit(name, elapsed_ms)
        else:
            self.monitor.record_miss(name, elapsed_ms)

    async def _write(self, key: str, value: Any, config: CacheConfig) -> bool:
        envelope = CacheEnvelope(
            value=value,
            stored_at_millis=self._clock(),
            ttl_millis=config.ttl_millis,
            schema_version=self.policy.current_schema_version,
        )
        try:
            raw = self.codec.encode(envelope)
        except CacheCodecError as e:
            logger.error("Cache SET rejected for %s: %s", key, e.message)
            return False
        try:
            await self.store.write(key, raw)
        except StorageError as e:
            logger.warning("Cache SET failed for %s: %s", key, e.message)
            return False
        logger.debug("Cache SET: %s (TTL: %sms)", key, config.ttl_millis)
        return True

    async def set(
        self,
        resource: ResourceName,
        value: Any,
        config: CacheConfig | None = None,
        **scope: Any,
    ) -> bool:
        """Store value, overwriting any previous entry. Returns False on failure."""
        name, cfg = self._resolve(resource, config)
        return await self._write(self._storage_key(name, cfg, scope), value, cfg)

    async def remove(
        self, resource: ResourceName, config: CacheConfig | None = None, **scope: Any
    ) -> bool:
        """Delete one entry. Removing an absent entry succeeds."""
        name, cfg = self._resolve(resource, config)
        key = self._storage_key(name, cfg, scope)
        try:
            await self.store.delete(key)
        except StorageError as e:
            logger.warning("Cache remove failed for %s: %s", key, e.message)
            return False
        logger.debug("Cache removed: %s", key)
        return True

    # ------------------------------------------------------------------
    # Bulk clears
    # ------------------------------------------------------------------

    async def _clear_matching(
        self, predicate: Callable[[CacheKey], bool] | None, label: str
    ) -> ClearResult:
        """Delete owned keys matching predicate (None matches every owned key)."""
        try:
            keys = await self.store.list_keys(self.key_prefix)
        except StorageError as e:
            logger.warning("Cache clear (%s) could not list keys: %s", label, e.message)
            return ClearResult(failed=(self.key_prefix,))
        targets = []
        for key in keys:
            if not self._owns(key):
                continue
            if predicate is None:
                targets.append(key)
                continue
            parsed = CacheKey.parse(key, self.key_prefix)
            if parsed is not None and predicate(parsed):
                targets.append(key)
        result = await self.store.delete_many(targets)
        logger.info(
            "Cache cleared for %s: %s removed, %s failed",
            label,
            result.removed_count,
            len(result.failed),
        )
        return result

    async def clear_user_cache(self, user_id: str) -> ClearResult:
        """Delete every entry scoped to exactly this user_id."""
        user_id = str(user_id)
        return await self._clear_matching(
            lambda key: key.scope(SCOPE_USER_ID) == user_id, f"user {user_id}"
        )

    async def clear_tenant_cache(self, tenant_id: str) -> ClearResult:
        """Delete every entry scoped to this school (school_id or tenant_id)."""
        tenant_id = str(tenant_id)
        return await self._clear_matching(
            lambda key: any(key.scope(name) == tenant_id for name in TENANT_SCOPE_NAMES),
            f"tenant {tenant_id}",
        )

    async def clear_all(self) -> ClearResult:
        """Delete every entry in the root namespace and its sub-namespaces.

        Keys that merely share the prefix text (e.g. "smsarchive:*" under
        root "sms") belong to someone else and are left alone. Malformed
        keys inside the namespace are removed too.
        """
        return await self._clear_matching(None, "all")

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def _owns(self, key: str) -> bool:
        return in_namespace(key.partition(CACHE_KEY_SEP)[0], self.key_prefix)

    def _is_live(self, raw: str, now: int) -> bool:
        decoded = self.codec.decode(raw)
        if decoded.is_err():
            return False
        return self.policy.classify(decoded.unwrap(), now) == Freshness.FRESH

    async def _is_online(self) -> bool:
        try:
            return await self.probe.is_connected()
        except Exception as e:
            logger.warning("Connectivity probe raised %s; reporting offline", e)
            return False

    async def get_stats(self) -> CacheStats:
        """Key count, stored size and expired count, plus network reachability.

        Keys are streamed and values read one at a time. Expired includes
        stale, version-mismatched and corrupt records.
        """
        online = await self._is_online()
        total_keys = 0
        total_bytes = 0
        expired = 0
        now = self._clock()
        try:
            async for key in self.store.iter_keys(self.key_prefix):
                if not self._owns(key):
                    continue
                total_keys += 1
                try:
                    raw = await self.store.read(key)
                except StorageError as e:
                    logger.debug("Stats skipped unreadable key %s: %s", key, e.message)
                    continue
                if raw is None:
                    continue
                total_bytes += len(raw.encode("utf-8"))
                if not self._is_live(raw, now):
                    expired += 1
        except StorageError as e:
            logger.warning("Cache stats unavailable: %s", e.message)
            return CacheStats(
                total_keys=0,
                approx_size_description=format_bytes(0),
                is_network_online=online,
            )
        return CacheStats(
            total_keys=total_keys,
            approx_size_description=format_bytes(total_bytes),
            is_network_online=online,
            total_size_bytes=total_bytes,
            expired_keys=expired,
        )

    async def cleanup_expired(self) -> CleanupResult:
        """Delete stale, version-mismatched and corrupt records."""
        now = self._clock()
        sizes: dict[str, int] = {}
        try:
            async for key in self.store.iter_keys(self.key_prefix):
                if not self._owns(key):
                    continue
                try:
                    raw = await self.store.read(key)
                except StorageError as e:
                    logger.debug("Cleanup skipped unreadable key %s: %s", key, e.message)
                    continue
                if raw is not None and not self._is_live(raw, now):
                    sizes[key] = len(raw.encode("utf-8"))
        except StorageError as e:
            logger.warning("Cache cleanup could not list keys: %s", e.message)
            return CleanupResult()

        if not sizes:
            return CleanupResult()
        result = await self.store.delete_many(sizes)
        freed = sum(sizes[key] for key in result.removed)
        logger.info(
            "Cleaned up %s expired cache entries (%s freed)",
            result.removed_count,
            format_bytes(freed),
        )
        return CleanupResult(removed_count=result.removed_count, freed_bytes=freed)

    async def batch_set(self, items: Iterable[BatchEntry[Any]]) -> int:
        """Store each entry; returns how many were written."""
        written = 0
        for item in items:
            if await self.set(item.resource, item.value, item.config, **item.scope):
                written += 1
        logger.debug("Batch cached %s items", written)
        return written

    async def batch_get(
        self, requests: Iterable[BatchEntry[Any]]
    ) -> list[BatchGetResult[Any]]:
        """Look up each entry; results keep request order."""
        results: list[BatchGetResult[Any]] = []
        for request in requests:
            found = await self.lookup(request.resource, request.config, **request.scope)
            results.append(
                BatchGetResult(
                    logical_name=resource_name(request.resource),
                    scope=dict(request.scope),
                    value=found.value if found.hit else None,
                    hit=found.hit,
                )
            )
        return results
