"""Tests for CacheWarmer job registration and execution."""

import pytest

from school_cache.application.services.cache_warmer import CacheWarmer, WarmResult
from school_cache.domain.exceptions import CacheConfigError, ValidationException
from school_cache.infrastructure.cache.tagged_cache import TaggedCache


async def ok() -> str:
    return "ok"


async def broken() -> str:
    raise RuntimeError("report service down")


class TestCacheWarmer:
    async def test_runs_all_jobs_and_isolates_failures(self) -> None:
        warmer = CacheWarmer()
        warmer.register("classes", ok)
        warmer.register("reports", broken)
        warmer.register("students", ok)
        result = await warmer.warm()
        assert result == WarmResult(warmed=("classes", "students"), failed=("reports",))

    async def test_selected_jobs_only(self) -> None:
        warmer = CacheWarmer()
        warmer.register("classes", ok)
        warmer.register("reports", broken)
        assert await warmer.warm(["classes", "classes"]) == WarmResult(warmed=("classes",))

    async def test_no_jobs(self) -> None:
        assert await CacheWarmer().warm() == WarmResult()

    async def test_unknown_job_rejected(self) -> None:
        warmer = CacheWarmer()
        warmer.register("classes", ok)
        with pytest.raises(ValidationException, match="missing"):
            await warmer.warm(["classes", "missing"])

    def test_duplicate_rejected(self) -> None:
        warmer = CacheWarmer()
        warmer.register("classes", ok)
        with pytest.raises(CacheConfigError):
            warmer.register("classes", ok)
        assert warmer.job_names == ["classes"]

    async def test_register_cached_populates_tagged_cache(self, monotonic) -> None:
        calls = []

        async def load_fees(term: str) -> list[str]:
            calls.append(term)
            return [term]

        cache = TaggedCache(clock=monotonic)
        cached = cache.with_cache(load_fees, ["fees"], tags=["fee-structures"])
        warmer = CacheWarmer()
        warmer.register_cached("fees-term-1", cached, "term-1")

        await warmer.warm()
        assert await cached("term-1") == ["term-1"]
        assert calls == ["term-1"]
