"""
Completion service configuration.

Controls which chat model evaluates labels and how calls to it are bounded.

Dependencies: pydantic, pydantic_settings
System role: Model access configuration for the analysis engine
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from labelcheck.configs.base import BaseSettings


class LLMSettings(BaseSettings):
    """Chat model and retry configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
    )

    model: str = Field(default="gpt-4o", description="Chat model identifier")
    provider: str = Field(default="openai", description="LangChain model provider")
    temperature: float = Field(default=0.0, description="Sampling temperature")
    max_tokens: int = Field(default=8000, description="Maximum tokens in a completion")

    request_timeout_seconds: float = Field(
        default=120.0,
        description="Bound on a single completion call, independent of the HTTP timeout",
    )
    max_retries: int = Field(
        default=3,
        description="Attempts made when the provider signals rate limiting",
    )
    retry_base_delay_seconds: float = Field(
        default=5.0,
        description="First backoff delay; doubles on each rate-limited attempt",
    )
