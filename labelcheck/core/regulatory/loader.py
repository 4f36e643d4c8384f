"""
Database-backed regulatory document loader.

Dependencies: sqlalchemy, labelcheck.boundary.db
System role: Feeds the regulatory document cache from the relational store
"""

from sqlalchemy.ext.asyncio import async_sessionmaker

from labelcheck.boundary.db.CRUD import regulatory_document_crud
from labelcheck.core.regulatory.document_cache import DocumentLoader
from labelcheck.models.regulatory import RegulatoryDocument


def database_document_loader(session_factory: async_sessionmaker, limit: int | None = 50) -> DocumentLoader:
    """
    Build a loader reading active documents, optionally of one category, in its own database session.

    Args:
        session_factory: Async session factory
        limit: Maximum number of documents to load

    Returns:
        DocumentLoader: Coroutine function for RegulatoryDocumentCache
    """

    async def load(category: str | None = None) -> list[RegulatoryDocument]:
        async with session_factory() as db:
            rows = await regulatory_document_crud.get_active(db, limit=limit, category=category)
            return [RegulatoryDocument.model_validate(row) for row in rows]

    return load
