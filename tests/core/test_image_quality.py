"""
Test suite for label photo quality assessment.

Images are generated with Pillow: flat fields for exposure and blur
failures, a coarse checkerboard for a sharp, well-exposed photo.

System role: Verification of the photo quality pre-check
"""

import io

import pytest
from PIL import Image

from labelcheck.configs.analysis import AnalysisSettings
from labelcheck.core.exceptions import PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError
from labelcheck.core.ingestion import Artifact, IngestionNormalizer
from labelcheck.core.ingestion.models import QualityIssueSeverity, QualityIssueType, QualityRating
from labelcheck.core.ingestion.tasks import ImageQualityTask
from labelcheck.core.ingestion.tasks.image_quality_task import rate_quality


def encode(image: Image.Image, image_format: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


def flat_image(width: int, height: int, level: int) -> bytes:
    return encode(Image.new("L", (width, height), color=level))


def checkerboard(width: int = 2000, height: int = 1504, cell: int = 8) -> bytes:
    """Black and white cells, sharp at every edge."""
    cells = Image.new("L", (width // cell, height // cell))
    cells.putdata([255 * ((x + y) % 2) for y in range(cells.height) for x in range(cells.width)])
    return encode(cells.resize((width, height), Image.Resampling.NEAREST))


@pytest.fixture
def task() -> ImageQualityTask:
    return ImageQualityTask()


def issue_types(report) -> dict[QualityIssueType, QualityIssueSeverity]:
    return {issue.type: issue.severity for issue in report.issues}


class TestImageQualityTask:
    """Test suite for metric computation and scoring."""

    def test_sharp_well_exposed_photo_should_be_excellent(self, task) -> None:
        # Act
        report = task.assess(checkerboard())

        # Assert
        assert report.width == 2000 and report.height == 1504
        assert report.format == "png"
        assert report.is_blurry is False
        assert report.blur_score == 100.0
        assert 120 <= report.brightness <= 135
        assert report.issues == []
        assert report.quality_score == 100
        assert report.recommendation == QualityRating.EXCELLENT

    def test_flat_photo_should_be_flagged_blurry_and_low_contrast(self, task) -> None:
        # Act
        report = task.assess(flat_image(1600, 1200, level=128))

        # Assert
        assert report.is_blurry is True
        assert report.blur_score == 0.0
        assert report.contrast == 0.0
        assert issue_types(report) == {
            QualityIssueType.BLUR: QualityIssueSeverity.CRITICAL,
            QualityIssueType.CONTRAST: QualityIssueSeverity.WARNING,
        }
        # 1.92MP (-10), severe blur (-30), low contrast (-10)
        assert report.quality_score == 50
        assert report.recommendation == QualityRating.ACCEPTABLE

    def test_small_dark_photo_should_be_unusable(self, task) -> None:
        # Act
        report = task.assess(flat_image(200, 200, level=10))

        # Assert
        issues = issue_types(report)
        assert issues[QualityIssueType.RESOLUTION] == QualityIssueSeverity.CRITICAL
        assert issues[QualityIssueType.BRIGHTNESS] == QualityIssueSeverity.CRITICAL
        assert "too dark" in next(i.message for i in report.issues if i.type == QualityIssueType.BRIGHTNESS)
        assert report.quality_score == 0
        assert report.recommendation == QualityRating.UNUSABLE

    def test_overexposed_photo_should_be_flagged(self, task) -> None:
        report = task.assess(flat_image(1600, 1200, level=250))

        brightness = next(i for i in report.issues if i.type == QualityIssueType.BRIGHTNESS)
        assert brightness.severity == QualityIssueSeverity.CRITICAL
        assert "overexposed" in brightness.message

    def test_dim_photo_should_get_brightness_warning(self, task) -> None:
        report = task.assess(flat_image(1600, 1200, level=60))

        brightness = next(i for i in report.issues if i.type == QualityIssueType.BRIGHTNESS)
        assert brightness.severity == QualityIssueSeverity.WARNING
        assert brightness.suggestion == "Use more lighting"

    def test_undecodable_bytes_should_raise(self, task) -> None:
        with pytest.raises(OSError):
            task.assess(b"not an image")

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (100, QualityRating.EXCELLENT),
            (85, QualityRating.EXCELLENT),
            (84, QualityRating.GOOD),
            (70, QualityRating.GOOD),
            (50, QualityRating.ACCEPTABLE),
            (30, QualityRating.POOR),
            (29, QualityRating.UNUSABLE),
        ],
    )
    def test_rate_quality(self, score, expected) -> None:
        assert rate_quality(score) == expected


class TestNormalizerQualityCheck:
    """Test suite for IngestionNormalizer.check_image_quality."""

    def test_should_assess_declared_image(self, analysis_settings) -> None:
        normalizer = IngestionNormalizer(analysis_settings)

        report = normalizer.check_image_quality(Artifact.from_bytes(checkerboard(), "image/png"))

        assert report.recommendation == QualityRating.EXCELLENT

    def test_should_reject_non_image_media_type(self, analysis_settings) -> None:
        normalizer = IngestionNormalizer(analysis_settings)

        with pytest.raises(UnsupportedMediaTypeError):
            normalizer.check_image_quality(Artifact.from_bytes(b"%PDF-1.7", "application/pdf"))

    def test_should_reject_undecodable_image(self, analysis_settings) -> None:
        normalizer = IngestionNormalizer(analysis_settings)

        with pytest.raises(ValidationError) as exc_info:
            normalizer.check_image_quality(Artifact.from_bytes(b"not an image", "image/jpeg"))

        assert exc_info.value.message == "Could not read image"

    def test_should_reject_empty_and_oversized_uploads(self) -> None:
        normalizer = IngestionNormalizer(AnalysisSettings(max_upload_bytes=100))

        with pytest.raises(ValidationError):
            normalizer.check_image_quality(Artifact.from_bytes(b"", "image/png"))
        with pytest.raises(PayloadTooLargeError):
            normalizer.check_image_quality(Artifact.from_bytes(checkerboard(), "image/png"))
