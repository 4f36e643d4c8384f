"""
Ingestion data models.

Input artifacts and the canonical content forms they normalize to.

Dependencies: pydantic
System role: Contracts between upload handling and the analysis pipeline
"""

import enum

from pydantic import BaseModel, Field


class ContentKind(str, enum.Enum):
    """Canonical content forms accepted by the analysis engine."""

    TEXT = "text"
    IMAGE = "image"


class ContentSource(str, enum.Enum):
    """How a piece of normalized content was obtained."""

    TEXT = "text"
    IMAGE = "image"
    PDF_TEXT = "pdf_text"
    PDF_RASTER = "pdf_raster"


class Artifact(BaseModel):
    """
    An uploaded artifact awaiting normalization.

    Exactly one of text or data is set. Binary data must carry the media
    type declared by the uploader.
    """

    text: str | None = None
    data: bytes | None = None
    media_type: str | None = None
    file_name: str | None = None

    @classmethod
    def from_text(cls, text: str) -> "Artifact":
        return cls(text=text, media_type="text/plain")

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str | None, file_name: str | None = None) -> "Artifact":
        return cls(data=data, media_type=media_type, file_name=file_name)

    @property
    def size(self) -> int:
        if self.data is not None:
            return len(self.data)
        return len(self.text or "")


class ImagePayload(BaseModel):
    """Base64-encoded image ready for a vision-capable model."""

    base64_data: str
    media_type: str = Field(description="MIME type of the encoded image, e.g. image/jpeg")

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.base64_data}"


class NormalizedContent(BaseModel):
    """Result of normalization: either extracted text or an encoded image."""

    kind: ContentKind
    source: ContentSource
    text: str | None = None
    image: ImagePayload | None = None
    truncated_for_model: bool = False

    @property
    def payload(self) -> str | ImagePayload:
        return self.text if self.kind == ContentKind.TEXT else self.image


class QualityIssueSeverity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class QualityIssueType(str, enum.Enum):
    RESOLUTION = "resolution"
    BLUR = "blur"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    FILE_SIZE = "filesize"


class QualityRating(str, enum.Enum):
    """Overall verdict derived from quality_score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    UNUSABLE = "unusable"


class ImageQualityIssue(BaseModel):
    """A single problem found in a label photo, with how to fix it."""

    severity: QualityIssueSeverity
    type: QualityIssueType
    message: str
    suggestion: str


class ImageQualityReport(BaseModel):
    """
    Quality metrics for a label photo, computed before analysis.

    Scores are advisory; a poor photo may still be analyzed.
    """

    width: int
    height: int
    megapixels: float
    file_size: int
    format: str
    is_blurry: bool
    blur_score: float = Field(description="0-100, lower is blurrier")
    brightness: float = Field(description="Mean luminance, 0-255")
    contrast: float = Field(description="0-100")
    quality_score: int = Field(description="0-100 overall")
    issues: list[ImageQualityIssue] = Field(default_factory=list)
    recommendation: QualityRating
