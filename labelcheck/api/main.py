"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, labelcheck.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from labelcheck.api.deps.dependencies import get_service_cache
from labelcheck.api.error_handlers import register_exception_handlers
from labelcheck.configs import get_settings
from labelcheck.observability import configure_logging
from labelcheck.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from .routers import analyze_router, health_router, sessions_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    configure_logging(get_settings().log_level)
    logger = logging.getLogger(__name__)

    # Startup
    logger.info("Pre-warming service cache...")
    cache = get_service_cache()
    # Trigger property access to load instances
    _ = cache.completion_client
    _ = cache.analysis_engine
    _ = cache.normalizer
    await cache.regulatory_cache.warm_up()
    logger.info("Service cache pre-warmed")

    yield

    # Shutdown
    cache.clear()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = get_settings()
    app = FastAPI(
        title="LabelCheck Compliance API",
        description="Food and supplement label compliance analysis with iterative sessions",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    register_exception_handlers(app)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(sessions_router, prefix="/api/v1")
    app.include_router(analyze_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "labelcheck.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
