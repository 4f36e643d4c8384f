"""
Health check API endpoints.

Routes: GET /health, GET /health/regulatory-cache

Dependencies: labelcheck.api.deps
System role: Health check HTTP API
"""

from fastapi import APIRouter
from pydantic import BaseModel

from labelcheck.api.deps import get_service_cache


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


class RegulatoryCacheResponse(BaseModel):
    """Regulatory document cache statistics."""

    is_cached: bool
    document_count: int
    age_seconds: float
    ttl_seconds: float
    hits: int
    misses: int
    cached_categories: list[str] = []


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/regulatory-cache", response_model=RegulatoryCacheResponse)
async def regulatory_cache_stats() -> RegulatoryCacheResponse:
    """Regulatory document cache statistics."""
    stats = get_service_cache().regulatory_cache.stats()
    return RegulatoryCacheResponse(
        is_cached=stats.is_cached,
        document_count=stats.document_count,
        age_seconds=round(stats.age_seconds, 1),
        ttl_seconds=stats.ttl_seconds,
        hits=stats.hits,
        misses=stats.misses,
        cached_categories=list(stats.cached_categories),
    )
