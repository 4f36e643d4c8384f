"""
Ingestion tasks.

Single-purpose, synchronous steps used by the ingestion normalizer.
"""

from labelcheck.core.ingestion.tasks.image_preprocessing_task import ImagePreprocessingTask
from labelcheck.core.ingestion.tasks.image_quality_task import ImageQualityTask
from labelcheck.core.ingestion.tasks.pdf_rasterization_task import PdfRasterizationTask
from labelcheck.core.ingestion.tasks.pdf_text_task import PdfTextExtractionTask

__all__ = ["ImagePreprocessingTask", "ImageQualityTask", "PdfRasterizationTask", "PdfTextExtractionTask"]
