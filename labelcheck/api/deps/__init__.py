"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_access_context,
    get_analysis_service,
    get_service_cache,
    get_session_service,
    get_settings_dependency,
)

__all__ = [
    "get_access_context",
    "get_analysis_service",
    "get_service_cache",
    "get_session_service",
    "get_settings_dependency",
]
