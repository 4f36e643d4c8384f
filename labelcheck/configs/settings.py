"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from labelcheck.configs.analysis import AnalysisSettings
from labelcheck.configs.base import BaseSettings
from labelcheck.configs.database import DatabaseSettings
from labelcheck.configs.llm import LLMSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    llm: LLMSettings = LLMSettings()
    analysis: AnalysisSettings = AnalysisSettings()

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed by the CORS middleware",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from labelcheck.configs import get_settings
        settings = get_settings()
    """
    return Settings()
