"""Server-side tag-based revalidation cache.

Wraps an async fetcher so repeated calls with the same arguments reuse
the stored result until its TTL elapses or one of its tags is
invalidated. Invalidation is lazy: a tag's generation is bumped and
entries recorded under an older generation are recomputed (and dropped)
on next access.

Tag generations are snapshotted when a fetch starts, so a value computed
before an invalidation is never stamped with the newer generation.

The fetcher is wrapped with memoize_request, keyed by that snapshot as
well as the arguments: inside a request scope concurrent misses for the
same arguments share one call, and a read after an invalidation in the
same request fetches again. Outside a scope each miss calls the fetcher
and the last write wins.

The cache holds at most max_entries entries. When full, dead entries are
purged first, then the least recently used live entry is evicted.
"""

from __future__ import annotations

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import wraps
from typing import Any

from school_cache.domain.exceptions import CacheConfigError
from school_cache.infrastructure.cache.invalidation import path_tag, tags_for
from school_cache.infrastructure.cache.monitor import CacheMonitor
from school_cache.infrastructure.cache.request_memo import memoize_request

logger = logging.getLogger(__name__)

TagGenerations = tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class _Entry:
    value: Any
    stored_at: float
    ttl_seconds: float
    tag_generations: TagGenerations


@dataclass(frozen=True)
class TaggedCacheStats:
    entries: int
    tags: int
    hits: int
    misses: int
    evictions: int = 0


class TaggedCache:
    """In-process data cache keyed by key parts plus call arguments.

    Args:
        clock: Monotonic seconds (injectable for tests).
        monitor: Optional hit/miss recorder, keyed by the joined key parts.
        default_ttl_seconds: TTL when with_cache() is not given one.
        max_entries: Upper bound on stored entries.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        monitor: CacheMonitor | None = None,
        default_ttl_seconds: float = 300,
        max_entries: int = 1000,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise CacheConfigError(f"default_ttl_seconds must be > 0, got {default_ttl_seconds}")
        if max_entries <= 0:
            raise CacheConfigError(f"max_entries must be > 0, got {max_entries}")
        self._clock = clock
        self.monitor = monitor
        self.default_ttl_seconds = default_ttl_seconds
        self.max_entries = max_entries
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._tag_index: dict[str, set[str]] = {}
        self._generations: dict[str, int] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def with_cache(
        self,
        fetcher: Callable[..., Awaitable[Any]],
        key_parts: Sequence[str],
        *,
        tags: Iterable[str] = (),
        ttl_seconds: float | None = None,
    ) -> Callable[..., Awaitable[Any]]:
        """Return a cached version of fetcher.

        The wrapper's arguments are serialized and appended to key_parts,
        so each distinct argument list gets its own entry.

        Raises:
            CacheConfigError: If key_parts is empty or ttl_seconds is not positive.
        """
        if not key_parts:
            raise CacheConfigError("key_parts must not be empty")
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise CacheConfigError(f"ttl_seconds must be > 0, got {ttl}")
        entry_tags = tuple(dict.fromkeys(tags))
        base_key = ":".join(key_parts)

        # generations only takes part in the memo key.
        async def fetch(generations: TagGenerations, *args: Any, **kwargs: Any) -> Any:
            return await fetcher(*args, **kwargs)

        load = memoize_request(fetch)

        @wraps(fetcher)
        async def cached(*args: Any, **kwargs: Any) -> Any:
            key = _entry_key(base_key, args, kwargs)
            started = time.perf_counter()
            entry = self._entries.get(key)
            if entry is not None:
                if self._is_valid(entry):
                    self._entries.move_to_end(key)
                    self._hits += 1
                    self._observe(base_key, started, hit=True)
                    logger.debug("Tagged cache HIT: %s", key)
                    return entry.value
                self._drop(key)

            self._misses += 1
            logger.debug("Tagged cache MISS: %s", key)
            generations = self._snapshot(entry_tags)
            try:
                value = await load(generations, *args, **kwargs)
            finally:
                self._observe(base_key, started, hit=False)
            self._store(key, value, ttl, generations)
            return value

        return cached

    def _snapshot(self, tags: tuple[str, ...]) -> TagGenerations:
        return tuple((tag, self._generations.get(tag, 0)) for tag in tags)

    def _is_valid(self, entry: _Entry) -> bool:
        if self._clock() - entry.stored_at >= entry.ttl_seconds:
            return False
        return all(
            self._generations.get(tag, 0) == generation
            for tag, generation in entry.tag_generations
        )

    def _store(self, key: str, value: Any, ttl: float, generations: TagGenerations) -> None:
        if key in self._entries:
            self._drop(key)
        elif len(self._entries) >= self.max_entries:
            self._make_room()
        self._entries[key] = _Entry(
            value=value,
            stored_at=self._clock(),
            ttl_seconds=ttl,
            tag_generations=generations,
        )
        for tag, _ in generations:
            self._tag_index.setdefault(tag, set()).add(key)

    def _make_room(self) -> None:
        if self.cleanup():
            return
        key = next(iter(self._entries))
        self._drop(key)
        self._evictions += 1
        logger.debug("Tagged cache EVICT (LRU): %s", key)

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag, _ in entry.tag_generations:
            keys = self._tag_index.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_index[tag]

    def _observe(self, name: str, started: float, hit: bool) -> None:
        if self.monitor is None:
            return
        elapsed_ms = (time.perf_counter() - started) * 1000
        if hit:
            self.monitor.record_hit(name, elapsed_ms)
        else:
            self.monitor.record_miss(name, elapsed_ms)

    def cleanup(self) -> int:
        """Drop expired and invalidated entries; returns how many were removed."""
        dead = [key for key, entry in self._entries.items() if not self._is_valid(entry)]
        for key in dead:
            self._drop(key)
        if dead:
            logger.debug("Tagged cache cleanup: %s dead entries removed", len(dead))
        return len(dead)

    def invalidate_tag(self, tag: str) -> int:
        """Mark every entry tagged with tag stale; returns how many were indexed under it."""
        self._generations[tag] = self._generations.get(tag, 0) + 1
        count = len(self._tag_index.get(tag, ()))
        logger.info("Tagged cache INVALIDATE tag=%s (%s entries)", tag, count)
        return count

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        return sum(self.invalidate_tag(tag) for tag in dict.fromkeys(tags))

    def invalidate_path(self, path: str) -> int:
        return self.invalidate_tag(path_tag(path))

    def invalidate_for(self, entity: str, operation: str) -> tuple[str, ...]:
        """Apply the invalidation rule for (entity, operation); returns the tags invalidated."""
        tags = tags_for(entity, operation)
        self.invalidate_tags(tags)
        return tags

    def clear(self) -> int:
        """Drop every entry; returns how many were stored.

        Tag generations survive, so a fetch still in flight cannot store a
        value that predates an earlier invalidation.
        """
        count = len(self._entries)
        self._entries.clear()
        self._tag_index.clear()
        logger.info("Tagged cache CLEARED: %s entries", count)
        return count

    def stats(self) -> TaggedCacheStats:
        return TaggedCacheStats(
            entries=len(self._entries),
            tags=len(self._tag_index),
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
        )


def _entry_key(base_key: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    if not args and not kwargs:
        return base_key
    encoded = json.dumps([list(args), kwargs], sort_keys=True, default=str, separators=(",", ":"))
    return f"{base_key}:{encoded}"
