"""
Base configuration settings.

Shared settings behaviour for every config module: .env loading,
case-insensitive variables and the process log level.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class BaseSettings(PydanticBaseSettings):
    """Base configuration class; subclasses set their own env_prefix."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: LogLevel = Field(
        default="INFO",
        description="Root logging level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value
