"""
Label photo quality assessment using Pillow.

Measures resolution, brightness, contrast and sharpness of an upload so a
user can retake a poor photo before spending an analysis on it.

Sharpness is the mean squared response of a 3x3 Laplacian over a
downscaled grayscale copy. Pillow clamps filter output to 0-255, so the
absolute response is the lighter of the filtered image and the filtered
negative.

Dependencies: PIL (Pillow)
System role: Optional pre-check stage of ingestion
"""

import io
import logging

from PIL import Image, ImageChops, ImageFilter, ImageOps, ImageStat

from labelcheck.core.ingestion.models import (
    ImageQualityIssue,
    ImageQualityReport,
    QualityIssueSeverity,
    QualityIssueType,
    QualityRating,
)

logger = logging.getLogger(__name__)

_LAPLACIAN = ImageFilter.Kernel((3, 3), [0, -1, 0, -1, 4, -1, 0, -1, 0], scale=1, offset=0)

BLUR_THRESHOLD = 30.0
SEVERE_BLUR_THRESHOLD = 15.0
LARGE_FILE_MB = 10.0

_RATINGS = (
    (85, QualityRating.EXCELLENT),
    (70, QualityRating.GOOD),
    (50, QualityRating.ACCEPTABLE),
    (30, QualityRating.POOR),
)


def _resolution_issues(width: int, height: int, megapixels: float) -> list[ImageQualityIssue]:
    size = f"{width}x{height}, {megapixels:.2f}MP"
    if megapixels < 0.3:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.CRITICAL,
                type=QualityIssueType.RESOLUTION,
                message=f"Image resolution is too low ({size})",
                suggestion=(
                    "Use a higher resolution camera or take the photo closer to the label. "
                    "Minimum recommended: 1MP (1280x720)"
                ),
            )
        ]
    if megapixels < 1.0:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.WARNING,
                type=QualityIssueType.RESOLUTION,
                message=f"Image resolution is low ({size})",
                suggestion="For best results, use at least 2MP resolution (1920x1080 or higher)",
            )
        ]
    return []


def _blur_issues(blur_score: float) -> list[ImageQualityIssue]:
    if blur_score < SEVERE_BLUR_THRESHOLD:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.CRITICAL,
                type=QualityIssueType.BLUR,
                message=f"Image is very blurry (blur score: {blur_score:.0f}/100)",
                suggestion=(
                    "Hold the camera steady, ensure good focus, and avoid movement. "
                    "Use your phone's camera auto-focus feature."
                ),
            )
        ]
    if blur_score < BLUR_THRESHOLD:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.WARNING,
                type=QualityIssueType.BLUR,
                message=f"Image appears slightly blurry (blur score: {blur_score:.0f}/100)",
                suggestion="Try taking the photo again with better focus or in better lighting",
            )
        ]
    return []


def _brightness_issues(brightness: float) -> list[ImageQualityIssue]:
    if brightness < 40:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.CRITICAL,
                type=QualityIssueType.BRIGHTNESS,
                message=f"Image is too dark (brightness: {brightness:.0f}/255)",
                suggestion="Take the photo in better lighting or increase exposure. Avoid shadows on the label.",
            )
        ]
    if brightness > 215:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.CRITICAL,
                type=QualityIssueType.BRIGHTNESS,
                message=f"Image is overexposed (brightness: {brightness:.0f}/255)",
                suggestion=(
                    "Reduce exposure or avoid direct harsh lighting. The label text should be clearly visible."
                ),
            )
        ]
    if brightness < 70 or brightness > 185:
        return [
            ImageQualityIssue(
                severity=QualityIssueSeverity.WARNING,
                type=QualityIssueType.BRIGHTNESS,
                message=f"Image brightness is suboptimal ({brightness:.0f}/255)",
                suggestion="Use more lighting" if brightness < 70 else "Reduce lighting or exposure",
            )
        ]
    return []


def _quality_score(megapixels: float, blur_score: float, brightness: float, contrast: float) -> int:
    score = 100
    if megapixels < 0.3:
        score -= 40
    elif megapixels < 1.0:
        score -= 20
    elif megapixels < 2.0:
        score -= 10

    if blur_score < SEVERE_BLUR_THRESHOLD:
        score -= 30
    elif blur_score < BLUR_THRESHOLD:
        score -= 15
    elif blur_score < 50:
        score -= 5

    if brightness < 40 or brightness > 215:
        score -= 25
    elif brightness < 70 or brightness > 185:
        score -= 10

    if contrast < 15:
        score -= 10
    elif contrast < 25:
        score -= 5
    return max(0, score)


def rate_quality(score: int) -> QualityRating:
    for floor, rating in _RATINGS:
        if score >= floor:
            return rating
    return QualityRating.UNUSABLE


class ImageQualityTask:
    """Compute quality metrics and issues for a label photo."""

    def __init__(self, analysis_max_side: int = 1000, blur_max_side: int = 500) -> None:
        """
        Initialize quality task.

        Args:
            analysis_max_side: Longest side of the copy used for brightness and contrast
            blur_max_side: Longest side of the copy used for the sharpness measure
        """
        self._analysis_max_side = analysis_max_side
        self._blur_max_side = blur_max_side

    def assess(self, data: bytes) -> ImageQualityReport:
        """
        Assess a label photo.

        Args:
            data: Encoded image bytes

        Returns:
            ImageQualityReport: Metrics, issues and overall rating

        Raises:
            OSError: When Pillow cannot decode the image
        """
        with Image.open(io.BytesIO(data)) as source:
            image_format = (source.format or "unknown").lower()
            image = ImageOps.exif_transpose(source).convert("L")

        width, height = image.size
        megapixels = (width * height) / 1_000_000

        sample = image.copy()
        sample.thumbnail((self._analysis_max_side, self._analysis_max_side))
        stat = ImageStat.Stat(sample)
        brightness = stat.mean[0]
        contrast = min(100.0, stat.stddev[0] / 70 * 100)

        blur_score = self._blur_score(image)

        issues = _resolution_issues(width, height, megapixels)
        issues += _blur_issues(blur_score)
        issues += _brightness_issues(brightness)
        if contrast < 15:
            issues.append(
                ImageQualityIssue(
                    severity=QualityIssueSeverity.WARNING,
                    type=QualityIssueType.CONTRAST,
                    message=f"Image has low contrast ({contrast:.0f}/100)",
                    suggestion=(
                        "Ensure good lighting with minimal glare. "
                        "The label text should stand out clearly from the background."
                    ),
                )
            )
        file_size_mb = len(data) / (1024 * 1024)
        if file_size_mb > LARGE_FILE_MB:
            issues.append(
                ImageQualityIssue(
                    severity=QualityIssueSeverity.WARNING,
                    type=QualityIssueType.FILE_SIZE,
                    message=f"File size is large ({file_size_mb:.1f}MB)",
                    suggestion="Consider compressing the image to improve upload speed",
                )
            )

        score = _quality_score(megapixels, blur_score, brightness, contrast)
        report = ImageQualityReport(
            width=width,
            height=height,
            megapixels=round(megapixels, 3),
            file_size=len(data),
            format=image_format,
            is_blurry=blur_score < BLUR_THRESHOLD,
            blur_score=round(blur_score, 1),
            brightness=round(brightness, 1),
            contrast=round(contrast, 1),
            quality_score=score,
            issues=issues,
            recommendation=rate_quality(score),
        )
        logger.debug(
            f"{__name__}:assess - Quality {score}/100 ({report.recommendation.value})",
            extra={"issue_count": len(issues), "blur_score": report.blur_score},
        )
        return report

    def _blur_score(self, gray: Image.Image) -> float:
        sample = gray.copy()
        sample.thumbnail((self._blur_max_side, self._blur_max_side))
        if sample.width < 3 or sample.height < 3:
            return 0.0
        response = ImageChops.lighter(
            sample.filter(_LAPLACIAN),
            ImageOps.invert(sample).filter(_LAPLACIAN),
        )
        # border pixels have no full neighbourhood
        interior = response.crop((1, 1, response.width - 1, response.height - 1))
        stat = ImageStat.Stat(interior)
        variance = stat.sum2[0] / stat.count[0]
        return min(100.0, variance / 1000 * 100)
