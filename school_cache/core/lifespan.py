"""Application lifespan: startup and shutdown.

Wiring only: logging, the cache container, telemetry. The container is
stored on app.state.cache and disposed on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from school_cache.core.config import get_settings
from school_cache.core.container import CacheContainer
from school_cache.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, telemetry (if enabled), cache container.
    Shutdown order: cache container dispose, telemetry shutdown.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if settings.telemetry_enabled:
        from school_cache.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        telemetry.instrument_logging()
        if settings.cache_store_backend == "redis":
            telemetry.instrument_redis()
        logger.info("Telemetry initialized")

    container = CacheContainer(settings)
    await container.init()
    app.state.cache = container

    yield

    # ---- Shutdown ----
    if getattr(app.state, "cache", None) is not None:
        await app.state.cache.dispose()
        app.state.cache = None

    if settings.telemetry_enabled:
        from school_cache.shared.telemetry.telemetry import get_telemetry, set_telemetry

        telemetry = get_telemetry()
        if telemetry is not None:
            telemetry.shutdown()
        set_telemetry(None)
