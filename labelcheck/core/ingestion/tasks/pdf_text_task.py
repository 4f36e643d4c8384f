"""
PDF text-layer extraction using LangChain PyPDFLoader.

Dependencies: langchain_community.document_loaders
System role: Fast path of PDF ingestion
"""

import logging
import os
import tempfile

from langchain_community.document_loaders import PyPDFLoader

from labelcheck.core.exceptions import ExtractionFailedError

logger = logging.getLogger(__name__)


class PdfTextExtractionTask:
    """Extract the embedded text layer of a PDF."""

    def extract(self, data: bytes) -> str:
        """
        Extract text from all pages of a PDF.

        Args:
            data: Raw PDF bytes

        Returns:
            str: Page texts joined by blank lines (may be empty for scanned PDFs)

        Raises:
            ExtractionFailedError: When the PDF cannot be read
        """
        # PyPDFLoader reads from a path
        fd, path = tempfile.mkstemp(suffix=".pdf")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            documents = PyPDFLoader(path).load()
        except Exception as e:
            raise ExtractionFailedError(
                f"Failed to read PDF text layer: {e}",
                {"stage": "text_layer", "error_type": type(e).__name__},
            ) from e
        finally:
            os.unlink(path)

        text = "\n\n".join(doc.page_content for doc in documents if doc.page_content)
        logger.debug(
            f"{__name__}:extract - Extracted {len(text)} chars from {len(documents)} pages"
        )
        return text
