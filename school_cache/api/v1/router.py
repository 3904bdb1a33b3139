"""API v1 router aggregation."""

from fastapi import APIRouter

from school_cache.api.v1.endpoints import cache_health, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(cache_health.router, prefix="/cache-health", tags=["cache"])
