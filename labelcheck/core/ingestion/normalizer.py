"""
Ingestion normalizer.

Turns an uploaded artifact (typed text, label image or PDF) into one of two
canonical forms the analysis engine accepts: extracted text or an encoded
image. PDFs take the text layer when it carries enough content and are
rasterized otherwise.

Dependencies: labelcheck.core.ingestion.tasks, labelcheck.configs
System role: First stage of the analysis pipeline; never touches storage
"""

import base64
import logging

from labelcheck.configs.analysis import AnalysisSettings
from labelcheck.core.exceptions import (
    ExtractionFailedError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from labelcheck.core.ingestion.models import (
    Artifact,
    ContentKind,
    ContentSource,
    ImagePayload,
    ImageQualityReport,
    NormalizedContent,
)
from labelcheck.core.ingestion.tasks import (
    ImagePreprocessingTask,
    ImageQualityTask,
    PdfRasterizationTask,
    PdfTextExtractionTask,
)
from labelcheck.core.ingestion.text_cleaning import clean_extracted_text

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
TEXT_MEDIA_TYPE = "text/plain"
IMAGE_MEDIA_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})

_MEDIA_TYPE_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}


def canonical_media_type(media_type: str | None) -> str | None:
    """Lowercase a declared media type, drop parameters and resolve aliases."""
    if not media_type:
        return None
    base = media_type.split(";", 1)[0].strip().lower()
    return _MEDIA_TYPE_ALIASES.get(base, base)


def truncate_for_storage(text: str, limit: int) -> tuple[str, bool]:
    """
    Truncate the stored copy of label text.

    Args:
        text: Text as sent to the model
        limit: Maximum stored length

    Returns:
        tuple: (stored text, whether it was truncated)
    """
    if len(text) <= limit:
        return text, False
    return text[:limit], True


class IngestionNormalizer:
    """Normalize uploaded artifacts into text or image content."""

    def __init__(
        self,
        settings: AnalysisSettings,
        pdf_text_task: PdfTextExtractionTask | None = None,
        rasterization_task: PdfRasterizationTask | None = None,
        image_task: ImagePreprocessingTask | None = None,
        quality_task: ImageQualityTask | None = None,
    ) -> None:
        """
        Initialize normalizer.

        Args:
            settings: Analysis limits and ingestion thresholds
            pdf_text_task: Text-layer extractor (default PyPDFLoader based)
            rasterization_task: PDF page renderer (default PyMuPDF based)
            image_task: Image enhancer (default Pillow based)
            quality_task: Photo quality pre-check (default Pillow based)
        """
        self._settings = settings
        self._pdf_text_task = pdf_text_task or PdfTextExtractionTask()
        self._rasterization_task = rasterization_task or PdfRasterizationTask(
            dpi=settings.pdf_raster_dpi
        )
        self._image_task = image_task or ImagePreprocessingTask(
            min_long_side=settings.image_min_long_side,
            quality=settings.image_jpeg_quality,
        )
        self._quality_task = quality_task or ImageQualityTask()

    def normalize(self, artifact: Artifact) -> NormalizedContent:
        """
        Convert an artifact into canonical content.

        Args:
            artifact: Typed text or bytes with a declared media type

        Returns:
            NormalizedContent: kind TEXT with text, or kind IMAGE with an encoded image

        Raises:
            ValidationError: Text too short or empty upload
            PayloadTooLargeError: Text or upload over its limit
            UnsupportedMediaTypeError: Media type is not text, image or PDF
            ExtractionFailedError: PDF yields neither text nor an image
        """
        media_type = canonical_media_type(artifact.media_type)

        if artifact.text is not None:
            if media_type not in (None, TEXT_MEDIA_TYPE):
                raise UnsupportedMediaTypeError(media_type)
            return NormalizedContent(
                kind=ContentKind.TEXT,
                source=ContentSource.TEXT,
                text=self.validate_text(artifact.text),
            )

        data = self._validate_upload(artifact)
        if media_type == PDF_MEDIA_TYPE:
            return self._normalize_pdf(data)
        if media_type in IMAGE_MEDIA_TYPES:
            return self._normalize_image(data, media_type)
        raise UnsupportedMediaTypeError(media_type)

    def validate_text(self, text: str) -> str:
        """
        Validate typed label text.

        Exactly max_text_length characters is accepted; one more is rejected.

        Args:
            text: Raw user text

        Returns:
            str: Stripped text, unmodified otherwise

        Raises:
            ValidationError: Shorter than min_text_length
            PayloadTooLargeError: Longer than max_text_length
        """
        stripped = text.strip()
        if len(stripped) < self._settings.min_text_length:
            raise ValidationError(
                f"Text must be at least {self._settings.min_text_length} characters",
                field="text",
                details={"length": len(stripped)},
            )
        if len(stripped) > self._settings.max_text_length:
            raise PayloadTooLargeError(
                f"Text must be at most {self._settings.max_text_length} characters",
                limit=self._settings.max_text_length,
                actual=len(stripped),
                field="text",
            )
        return stripped

    def check_image_quality(self, artifact: Artifact) -> ImageQualityReport:
        """
        Assess a label photo before it is analyzed.

        Args:
            artifact: Uploaded image bytes with their declared media type

        Returns:
            ImageQualityReport: Resolution, brightness, contrast and sharpness findings

        Raises:
            ValidationError: Empty upload or bytes Pillow cannot decode
            PayloadTooLargeError: Upload over its limit
            UnsupportedMediaTypeError: Declared type is not an image
        """
        media_type = canonical_media_type(artifact.media_type)
        if media_type is not None and media_type not in IMAGE_MEDIA_TYPES:
            raise UnsupportedMediaTypeError(media_type)
        data = self._validate_upload(artifact)
        try:
            return self._quality_task.assess(data)
        except OSError as e:
            raise ValidationError(
                "Could not read image", field="file", details={"error_type": type(e).__name__}
            ) from e

    def _validate_upload(self, artifact: Artifact) -> bytes:
        data = artifact.data or b""
        if not data:
            raise ValidationError("Uploaded file is empty", field="file")
        if len(data) > self._settings.max_upload_bytes:
            raise PayloadTooLargeError(
                f"File exceeds maximum size of {self._settings.max_upload_bytes} bytes",
                limit=self._settings.max_upload_bytes,
                actual=len(data),
                field="file",
            )
        return data

    def _normalize_pdf(self, data: bytes) -> NormalizedContent:
        if not data.lstrip()[:5] == b"%PDF-":
            raise UnsupportedMediaTypeError("application/pdf (invalid signature)")

        text = ""
        try:
            text = clean_extracted_text(self._pdf_text_task.extract(data))
        except ExtractionFailedError as e:
            logger.warning(
                f"{__name__}:_normalize_pdf - Text layer unreadable, falling back to rasterization",
                extra={"error_msg": e.message},
            )

        if len(text) >= self._settings.pdf_min_text_length:
            truncated = False
            if len(text) > self._settings.max_model_text_length:
                logger.warning(
                    f"{__name__}:_normalize_pdf - Extracted text exceeds model limit, truncating",
                    extra={
                        "text_length": len(text),
                        "limit": self._settings.max_model_text_length,
                    },
                )
                text = text[: self._settings.max_model_text_length]
                truncated = True
            logger.info(f"{__name__}:_normalize_pdf - Using text layer ({len(text)} chars)")
            return NormalizedContent(
                kind=ContentKind.TEXT,
                source=ContentSource.PDF_TEXT,
                text=text,
                truncated_for_model=truncated,
            )

        logger.info(
            f"{__name__}:_normalize_pdf - Text layer too short ({len(text)} chars), rasterizing",
            extra={"threshold": self._settings.pdf_min_text_length},
        )
        png = self._rasterization_task.rasterize_first_page(data)
        image = self._encode_image(png, "image/png")
        return NormalizedContent(kind=ContentKind.IMAGE, source=ContentSource.PDF_RASTER, image=image)

    def _normalize_image(self, data: bytes, media_type: str) -> NormalizedContent:
        image = self._encode_image(data, media_type)
        return NormalizedContent(kind=ContentKind.IMAGE, source=ContentSource.IMAGE, image=image)

    def _encode_image(self, data: bytes, media_type: str) -> ImagePayload:
        try:
            data = self._image_task.preprocess(data)
            media_type = self._image_task.output_media_type
        except Exception as e:
            # Unreadable by Pillow: the model gets the original bytes
            logger.warning(
                f"{__name__}:_encode_image - Preprocessing failed, using original image",
                extra={"media_type": media_type, "error_type": type(e).__name__, "error_msg": str(e)},
            )
        return ImagePayload(base64_data=base64.b64encode(data).decode("ascii"), media_type=media_type)
