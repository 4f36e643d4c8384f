"""
Analysis session CRUD operations.

Dependencies: sqlalchemy, labelcheck.boundary.db.models
System role: Session persistence operations
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from labelcheck.boundary.db.CRUD.base_crud import BaseCRUD
from labelcheck.boundary.db.models.session_model import AnalysisSessionModel
from labelcheck.models.session import SessionStatus


class SessionCRUD(BaseCRUD[AnalysisSessionModel]):
    """
    CRUD operations for AnalysisSessionModel.

    Extends BaseCRUD with per-user listing and the updated_at touch
    performed when an iteration is appended.
    """

    def __init__(self) -> None:
        """Initialize SessionCRUD with AnalysisSessionModel."""
        super().__init__(AnalysisSessionModel)

    async def list_for_user(
        self,
        session: AsyncSession,
        user_id: UUID,
        status: SessionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[AnalysisSessionModel]:
        """
        List a user's sessions, most recently active first.

        Args:
            session: Async database session
            user_id: Owning user id
            status: Optional lifecycle filter
            limit: Maximum number of sessions to return
            offset: Number of sessions to skip

        Returns:
            Sequence of AnalysisSessionModel rows
        """
        stmt = (
            select(AnalysisSessionModel)
            .where(AnalysisSessionModel.user_id == user_id)
            .order_by(AnalysisSessionModel.updated_at.desc(), AnalysisSessionModel.id)
            .offset(offset)
        )
        if status is not None:
            stmt = stmt.where(AnalysisSessionModel.status == status)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def touch(self, session: AsyncSession, id: UUID, at: datetime) -> None:
        """
        Set a session's updated_at without loading it.

        Args:
            session: Async database session
            id: Session UUID
            at: New updated_at value
        """
        stmt = (
            update(AnalysisSessionModel)
            .where(AnalysisSessionModel.id == id)
            .values(updated_at=at)
        )
        await session.execute(stmt)


session_crud = SessionCRUD()
