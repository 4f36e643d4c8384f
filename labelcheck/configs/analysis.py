"""
Analysis pipeline configuration.

Input limits, ingestion thresholds and cache sizing for label analysis.

Dependencies: pydantic, pydantic_settings
System role: Tunables for ingestion, context assembly and regulatory caching
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from labelcheck.configs.base import BaseSettings


class AnalysisSettings(BaseSettings):
    """Limits and thresholds for the analysis flow."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ANALYSIS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Input limits
    min_text_length: int = Field(default=10, description="Minimum typed label text length")
    max_text_length: int = Field(default=10_000, description="Maximum typed label text length")
    max_stored_text_length: int = Field(
        default=10_000, description="Text kept in iteration input payloads"
    )
    max_model_text_length: int = Field(
        default=100_000, description="Hard limit on extracted text sent to the model"
    )
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Maximum upload size")
    max_chat_message_length: int = Field(default=1_000, description="Maximum chat question length")

    # Ingestion
    pdf_min_text_length: int = Field(
        default=100, description="Text-layer length below which a PDF is rasterized"
    )
    pdf_raster_dpi: int = Field(default=200, description="DPI used when rasterizing a PDF page")
    image_min_long_side: int = Field(
        default=1500, description="Images with a shorter longest side are upscaled to this"
    )
    image_jpeg_quality: int = Field(default=95, description="JPEG quality after preprocessing")

    # Context assembly
    chat_history_window: int = Field(default=5, description="Chat turns carried into prompts")
    prefix_cache_size: int = Field(default=256, description="Memoized prompt prefixes")

    # Regulatory documents
    regulatory_cache_ttl_seconds: float = Field(
        default=3600.0, description="Regulatory document cache expiry"
    )
    regulatory_document_limit: int = Field(
        default=50, description="Maximum active documents loaded into context"
    )
