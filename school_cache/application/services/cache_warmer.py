"""Cache warming: named jobs that pre-populate the tagged cache.

Jobs are usually with_cache() wrappers bound to fixed arguments, so
running one stores its result. Jobs run concurrently; one failing job
does not stop the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from functools import partial
from typing import Any

from school_cache.domain.exceptions import CacheConfigError, ValidationException
from school_cache.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)

WarmJob = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class WarmResult:
    warmed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()


class CacheWarmer:
    """Registry and runner of warm-up jobs."""

    def __init__(self) -> None:
        self._jobs: dict[str, WarmJob] = {}

    @property
    def job_names(self) -> list[str]:
        return list(self._jobs)

    def register(self, name: str, job: WarmJob) -> None:
        """Register job under name.

        Raises:
            CacheConfigError: If name is already registered.
        """
        if name in self._jobs:
            raise CacheConfigError(f"Warm job already registered: {name}")
        self._jobs[name] = job

    def register_cached(
        self, name: str, cached_fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> None:
        """Register a cached function call with fixed arguments as a warm job."""
        self.register(name, partial(cached_fn, *args, **kwargs))

    @traced("cache_warmer.warm")
    async def warm(self, names: Iterable[str] | None = None) -> WarmResult:
        """Run the named jobs (all jobs when names is None).

        Raises:
            ValidationException: If a name is not registered.
        """
        selected = list(self._jobs) if names is None else list(dict.fromkeys(names))
        unknown = [name for name in selected if name not in self._jobs]
        if unknown:
            raise ValidationException(
                f"Unknown warm jobs: {', '.join(unknown)}", field="jobs"
            )
        if not selected:
            return WarmResult()

        logger.info("Warming cache: %s", ", ".join(selected))
        outcomes = await asyncio.gather(
            *(self._jobs[name]() for name in selected), return_exceptions=True
        )
        warmed: list[str] = []
        failed: list[str] = []
        for name, outcome in zip(selected, outcomes):
            if isinstance(outcome, Exception):
                logger.warning("Warm job %s failed: %s", name, outcome)
                failed.append(name)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                warmed.append(name)
        logger.info("Cache warmed: %s ok, %s failed", len(warmed), len(failed))
        return WarmResult(warmed=tuple(warmed), failed=tuple(failed))
