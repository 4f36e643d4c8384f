"""
Label image preprocessing using Pillow.

Improves legibility of small print before vision analysis: corrects
orientation, upscales small images, stretches contrast and sharpens.

Dependencies: PIL (Pillow)
System role: Image normalization stage of ingestion
"""

import io
import logging

from PIL import Image, ImageFilter, ImageOps

logger = logging.getLogger(__name__)


class ImagePreprocessingTask:
    """Re-encode label images as enhanced JPEGs."""

    output_media_type = "image/jpeg"

    def __init__(self, min_long_side: int = 1500, quality: int = 95) -> None:
        """
        Initialize preprocessing task.

        Args:
            min_long_side: Images whose longest side is smaller are upscaled to this size
            quality: JPEG quality of the output
        """
        self._min_long_side = min_long_side
        self._quality = quality

    def preprocess(self, data: bytes) -> bytes:
        """
        Enhance an image for text recognition.

        Args:
            data: Encoded image bytes (JPEG, PNG, WebP or GIF)

        Returns:
            bytes: JPEG-encoded enhanced image

        Raises:
            OSError: When Pillow cannot decode the image
        """
        with Image.open(io.BytesIO(data)) as source:
            image = ImageOps.exif_transpose(source).convert("RGB")

        width, height = image.size
        long_side = max(width, height)
        if long_side < self._min_long_side:
            scale = self._min_long_side / long_side
            image = image.resize(
                (round(width * scale), round(height * scale)),
                Image.Resampling.LANCZOS,
            )
            logger.debug(
                f"{__name__}:preprocess - Upscaled {width}x{height} to {image.width}x{image.height}"
            )

        image = ImageOps.autocontrast(image)
        image = image.filter(ImageFilter.UnsharpMask(radius=1, percent=100, threshold=2))

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=self._quality)
        return buffer.getvalue()
