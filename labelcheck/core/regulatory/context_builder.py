"""
Regulatory context builder.

Renders active regulatory documents into the block that opens every
analysis prompt. Output is byte-stable for a given document set regardless
of the order documents were loaded in.

Dependencies: labelcheck.core.regulatory.document_cache
System role: Stable, cacheable prompt prefix source
"""

import logging

from labelcheck.core.regulatory.document_cache import RegulatoryDocumentCache
from labelcheck.models.regulatory import RegulatoryDocument

logger = logging.getLogger(__name__)

NO_DOCUMENTS_CONTEXT = (
    "No specific regulatory documents provided. Use general FDA food labeling knowledge."
)
CONTEXT_HEADER = "Use the following regulatory documents and requirements to evaluate this food label:"
DOCUMENT_SEPARATOR = "\n\n---\n\n"


def _sort_key(document: RegulatoryDocument) -> tuple[str, str, str]:
    return (document.category or "", document.title, str(document.id))


def _render_document(document: RegulatoryDocument) -> str:
    origin = document.source or document.jurisdiction or "N/A"
    effective = document.effective_date.isoformat() if document.effective_date else "N/A"
    return (
        f"## {document.title} ({origin})\n"
        f"**Type:** {document.document_type or 'N/A'}\n"
        f"**Effective Date:** {effective}\n"
        f"**Description:** {document.description or 'N/A'}\n"
        f"\n"
        f"**Requirements:**\n"
        f"{document.content.strip()}"
    )


def build_context(documents: list[RegulatoryDocument]) -> str:
    """
    Render documents into a single context block.

    Inactive documents are skipped. Documents are ordered by
    (category, title, id) so the same set always renders identically.

    Args:
        documents: Regulatory documents

    Returns:
        str: Context block, or a fallback instruction when there are none
    """
    active = sorted((doc for doc in documents if doc.is_active), key=_sort_key)
    if not active:
        return NO_DOCUMENTS_CONTEXT
    body = DOCUMENT_SEPARATOR.join(_render_document(doc) for doc in active)
    return f"{CONTEXT_HEADER}\n\n{body}"


class RegulatoryContextBuilder:
    """Load active regulatory documents and render them as prompt context."""

    def __init__(self, cache: RegulatoryDocumentCache) -> None:
        self._cache = cache

    async def get_active_documents(self, category: str | None = None) -> list[RegulatoryDocument]:
        """
        Return active documents in render order.

        A category with no active documents falls back to the full set.

        Args:
            category: Product category to scope to, or None for every document

        Returns:
            list[RegulatoryDocument]: Active documents; empty on data-layer error
        """
        if category is not None:
            scoped = self._active(await self._cache.get_documents(category))
            if scoped:
                logger.debug(
                    f"{__name__}:get_active_documents - {len(scoped)} active documents",
                    extra={"category": category},
                )
                return scoped
            logger.info(
                f"{__name__}:get_active_documents - No documents for category, using full set",
                extra={"category": category},
            )

        active = self._active(await self._cache.get_documents())
        logger.debug(f"{__name__}:get_active_documents - {len(active)} active documents")
        return active

    @staticmethod
    def _active(documents: list[RegulatoryDocument]) -> list[RegulatoryDocument]:
        return sorted((doc for doc in documents if doc.is_active), key=_sort_key)

    def build_context(self, documents: list[RegulatoryDocument]) -> str:
        return build_context(documents)

    async def get_context(self, category: str | None = None) -> str:
        """Load and render the regulatory context for a category (None for all documents)."""
        return build_context(await self.get_active_documents(category))
