"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers. See
school_cache.core.lifespan and school_cache.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
clear the get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from school_cache.api.v1 import api_router
from school_cache.core.config import get_settings
from school_cache.core.exception_handlers import register_exception_handlers
from school_cache.core.lifespan import create_lifespan
from school_cache.middleware import (
    CacheHeadersMiddleware,
    RequestMemoMiddleware,
)


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    # Last added = outermost. Order: cache headers -> memo -> CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestMemoMiddleware)
    app.add_middleware(CacheHeadersMiddleware, bypass_header=settings.cache_bypass_header)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
