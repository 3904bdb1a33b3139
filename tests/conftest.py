"""Pytest configuration and fixtures for school_cache.

HTTP tests run school_cache.main.create_app() over ASGI. ASGITransport does
not run the lifespan, so the client fixture installs its own cache
container (in-memory store, static probe, controllable clocks).
"""

import pytest
from httpx import ASGITransport, AsyncClient

from school_cache.core.config import Settings
from school_cache.core.container import CacheContainer
from school_cache.infrastructure.cache.connectivity import StaticConnectivityProbe
from school_cache.infrastructure.cache.fallback_manager import FallbackCacheManager
from school_cache.infrastructure.cache.monitor import CacheMonitor
from school_cache.infrastructure.cache.stores.memory_store import InMemoryKeyValueStore
from school_cache.main import create_app


class FakeClock:
    """Callable clock returning a settable time (milliseconds or seconds)."""

    def __init__(self, now: float = 1_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, delta: float) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    """Epoch-milliseconds clock starting at t=1000."""
    return FakeClock(1_000)


@pytest.fixture
def monotonic() -> FakeClock:
    """Seconds clock for the tagged cache."""
    return FakeClock(0.0)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def monitor() -> CacheMonitor:
    return CacheMonitor()


@pytest.fixture
async def manager(
    store: InMemoryKeyValueStore, clock: FakeClock, monitor: CacheMonitor
) -> FallbackCacheManager:
    """Initialized fallback cache manager over an in-memory store."""
    mgr = FallbackCacheManager(
        store,
        probe=StaticConnectivityProbe(online=True),
        clock=clock,
        monitor=monitor,
    )
    await mgr.init()
    yield mgr
    await mgr.dispose()


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env, memory store, telemetry off)."""
    return Settings(_env_file=None, cache_store_backend="memory", telemetry_enabled=False)


@pytest.fixture
async def container(
    settings: Settings,
    store: InMemoryKeyValueStore,
    clock: FakeClock,
    monotonic: FakeClock,
) -> CacheContainer:
    c = CacheContainer(
        settings,
        store=store,
        probe=StaticConnectivityProbe(online=True),
        clock=clock,
        monotonic=monotonic,
    )
    await c.init()
    yield c
    await c.dispose()


@pytest.fixture
async def client(container: CacheContainer) -> AsyncClient:
    """Async HTTP client against a fresh app wired to the test container."""
    app = create_app()
    app.state.cache = container
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
