"""
Ingestion module.

Normalizes uploaded label artifacts into text or image content and
assesses label photo quality.
"""

from labelcheck.core.ingestion.models import (
    Artifact,
    ContentKind,
    ContentSource,
    ImagePayload,
    ImageQualityReport,
    NormalizedContent,
)
from labelcheck.core.ingestion.normalizer import IngestionNormalizer, truncate_for_storage

__all__ = [
    "Artifact",
    "ContentKind",
    "ContentSource",
    "ImagePayload",
    "ImageQualityReport",
    "IngestionNormalizer",
    "NormalizedContent",
    "truncate_for_storage",
]
