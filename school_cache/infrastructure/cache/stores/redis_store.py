"""Redis-backed key-value store for the fallback cache.

Async Redis client with connect / reconnect-once / disconnect handling.
Envelope expiry is decided by the freshness policy, not Redis TTLs, so
values are written without expiry and version mismatches stay
observable.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, TypeVar

import redis.asyncio as redis

from school_cache.domain.entities import ClearResult
from school_cache.infrastructure.cache.stores.base import KeyValueStore
from school_cache.infrastructure.exceptions import StorageError, StorageUnavailableError

if TYPE_CHECKING:
    from school_cache.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNLINK_CHUNK_SIZE = 500


class RedisKeyValueStore(KeyValueStore):
    """KeyValueStore over redis.asyncio.

    Call open() at startup and close() at shutdown. A connection failure on
    open leaves the store unavailable; every operation then raises
    StorageUnavailableError, which the manager treats as a miss.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        redis_client: redis.Redis | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Connection settings; required unless redis_client is given.
            redis_client: Optional pre-built client for testing or DI.
        """
        self.redis = redis_client
        self.settings = settings
        self._connected = redis_client is not None

    async def open(self) -> None:
        """Establish Redis connection."""
        if self.redis is not None or self.settings is None:
            return
        try:
            self.redis = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=(
                    self.settings.redis_password.get_secret_value()
                    if self.settings.redis_password
                    else None
                ),
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
            )
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Redis cache store connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache store unavailable.", e)
            self._connected = False
            self.redis = None

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache store disconnected")

    async def _reconnect(self) -> bool:
        """Drop the client and connect again. Returns True if reconnected."""
        if self.redis is None or self.settings is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing stale Redis client")
        self.redis = None
        self._connected = False
        await self.open()
        return self._connected

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def _run(
        self, operation: str, key: str | None, call: Callable[[redis.Redis], Awaitable[T]]
    ) -> T:
        """Run call against the client, reconnecting once on connection loss."""
        if not self.is_available() or self.redis is None:
            raise StorageUnavailableError(operation, key)
        try:
            return await call(self.redis)
        except (redis.ConnectionError, redis.TimeoutError) as e:
            if await self._reconnect() and self.redis is not None:
                try:
                    return await call(self.redis)
                except redis.RedisError as retry_error:
                    raise StorageError(operation, key, str(retry_error)) from retry_error
            raise StorageError(operation, key, str(e)) from e
        except redis.RedisError as e:
            raise StorageError(operation, key, str(e)) from e

    async def read(self, key: str) -> str | None:
        return await self._run("read", key, lambda r: r.get(key))

    async def write(self, key: str, raw: str) -> None:
        await self._run("write", key, lambda r: r.set(key, raw))

    async def delete(self, key: str) -> None:
        await self._run("delete", key, lambda r: r.unlink(key))

    async def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        if not self.is_available() or self.redis is None:
            raise StorageUnavailableError("list", prefix)
        try:
            async for key in self.redis.scan_iter(match=f"{_escape_glob(prefix)}*"):
                yield key
        except redis.RedisError as e:
            raise StorageError("list", prefix, str(e)) from e

    async def delete_many(self, keys: Iterable[str]) -> ClearResult:
        """UNLINK keys in pipelined chunks; a failed chunk is reported as failed keys."""
        removed: list[str] = []
        failed: list[str] = []
        pending = list(keys)
        for start in range(0, len(pending), _UNLINK_CHUNK_SIZE):
            chunk = pending[start : start + _UNLINK_CHUNK_SIZE]

            async def unlink_chunk(r: redis.Redis, chunk: list[str] = chunk) -> list:
                async with r.pipeline(transaction=False) as pipe:
                    for key in chunk:
                        pipe.unlink(key)
                    return await pipe.execute()

            try:
                await self._run("clear", chunk[0], unlink_chunk)
                removed.extend(chunk)
            except StorageError as e:
                logger.warning("Redis UNLINK failed for %s keys: %s", len(chunk), e.message)
                failed.extend(chunk)
        if removed:
            logger.info("Cache store INVALIDATE: %s keys", len(removed))
        return ClearResult(removed=tuple(removed), failed=tuple(failed))


def _escape_glob(prefix: str) -> str:
    """Escape Redis glob metacharacters so prefix matches literally."""
    out = []
    for ch in prefix:
        if ch in "*?[]\\":
            out.append("\\")
        out.append(ch)
    return "".join(out)
