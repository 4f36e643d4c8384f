"""API routers."""

from .analyze import router as analyze_router
from .health import router as health_router
from .sessions import router as sessions_router

__all__ = [
    "analyze_router",
    "health_router",
    "sessions_router",
]
