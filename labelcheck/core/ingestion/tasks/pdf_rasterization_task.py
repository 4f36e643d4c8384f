"""
PDF rasterization using PyMuPDF.

Dependencies: fitz (PyMuPDF)
System role: Fallback path of PDF ingestion for scanned or image-only PDFs
"""

import logging

import fitz

from labelcheck.core.exceptions import ExtractionFailedError

logger = logging.getLogger(__name__)


class PdfRasterizationTask:
    """Render the first page of a PDF to a PNG image."""

    def __init__(self, dpi: int = 200) -> None:
        """
        Initialize rasterization task.

        Args:
            dpi: Render resolution
        """
        self._dpi = dpi

    def rasterize_first_page(self, data: bytes) -> bytes:
        """
        Render page 1 of a PDF.

        Args:
            data: Raw PDF bytes

        Returns:
            bytes: PNG-encoded page image

        Raises:
            ExtractionFailedError: When the PDF cannot be opened or has no pages
        """
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if doc.page_count == 0:
                    raise ExtractionFailedError("PDF has no pages", {"stage": "rasterize"})
                pixmap = doc[0].get_pixmap(dpi=self._dpi)
                png = pixmap.tobytes("png")
        except ExtractionFailedError:
            raise
        except Exception as e:
            raise ExtractionFailedError(
                f"Failed to rasterize PDF: {e}",
                {"stage": "rasterize", "error_type": type(e).__name__},
            ) from e

        logger.info(
            f"{__name__}:rasterize_first_page - Rendered {pixmap.width}x{pixmap.height} at {self._dpi} dpi"
        )
        return png
