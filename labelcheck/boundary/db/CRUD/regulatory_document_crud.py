"""
Regulatory document CRUD operations.

Dependencies: sqlalchemy, labelcheck.boundary.db.models
System role: Read path for regulatory reference content
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labelcheck.boundary.db.CRUD.base_crud import BaseCRUD
from labelcheck.boundary.db.models.regulatory_document_model import RegulatoryDocumentModel


class RegulatoryDocumentCRUD(BaseCRUD[RegulatoryDocumentModel]):
    """CRUD operations for RegulatoryDocumentModel."""

    def __init__(self) -> None:
        """Initialize RegulatoryDocumentCRUD with RegulatoryDocumentModel."""
        super().__init__(RegulatoryDocumentModel)

    async def get_active(
        self,
        session: AsyncSession,
        limit: int | None = None,
        category: str | None = None,
    ) -> Sequence[RegulatoryDocumentModel]:
        """
        Retrieve active documents in a stable order.

        Args:
            session: Async database session
            limit: Maximum number of documents to return
            category: Only documents of this category (None for all)

        Returns:
            Active documents ordered by (category, title, id)
        """
        stmt = (
            select(RegulatoryDocumentModel)
            .where(RegulatoryDocumentModel.is_active.is_(True))
            .order_by(
                RegulatoryDocumentModel.category,
                RegulatoryDocumentModel.title,
                RegulatoryDocumentModel.id,
            )
        )
        if category is not None:
            stmt = stmt.where(RegulatoryDocumentModel.category == category)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()


regulatory_document_crud = RegulatoryDocumentCRUD()
