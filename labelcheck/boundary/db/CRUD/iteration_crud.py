"""
Analysis iteration CRUD operations.

Iterations are append-only: this module exposes inserts and ordered reads,
never updates or deletes.

Dependencies: sqlalchemy, labelcheck.boundary.db.models
System role: Iteration history persistence
"""

from collections.abc import Iterable
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labelcheck.boundary.db.CRUD.base_crud import BaseCRUD
from labelcheck.boundary.db.models.iteration_model import AnalysisIterationModel
from labelcheck.models.iteration import IterationType


class IterationCRUD(BaseCRUD[AnalysisIterationModel]):
    """CRUD operations for AnalysisIterationModel."""

    def __init__(self) -> None:
        """Initialize IterationCRUD with AnalysisIterationModel."""
        super().__init__(AnalysisIterationModel)

    async def list_for_session(
        self,
        session: AsyncSession,
        session_id: UUID,
    ) -> Sequence[AnalysisIterationModel]:
        """
        Retrieve a session's iterations in insertion order.

        Args:
            session: Async database session
            session_id: Session UUID

        Returns:
            Iterations ordered by (created_at, sequence)
        """
        stmt = (
            select(AnalysisIterationModel)
            .where(AnalysisIterationModel.session_id == session_id)
            .order_by(AnalysisIterationModel.created_at, AnalysisIterationModel.sequence)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_last(
        self,
        session: AsyncSession,
        session_id: UUID,
    ) -> AnalysisIterationModel | None:
        """
        Retrieve the iteration with the highest sequence in a session.

        Args:
            session: Async database session
            session_id: Session UUID

        Returns:
            Last inserted iteration, None for an empty session
        """
        stmt = (
            select(AnalysisIterationModel)
            .where(AnalysisIterationModel.session_id == session_id)
            .order_by(AnalysisIterationModel.sequence.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest(
        self,
        session: AsyncSession,
        session_id: UUID,
        types: Iterable[IterationType] | None = None,
    ) -> AnalysisIterationModel | None:
        """
        Retrieve the most recent iteration, optionally restricted to some types.

        Ties on created_at go to the higher sequence.

        Args:
            session: Async database session
            session_id: Session UUID
            types: Iteration types to consider (None for all)

        Returns:
            Most recent matching iteration, None if there is none
        """
        stmt = select(AnalysisIterationModel).where(
            AnalysisIterationModel.session_id == session_id
        )
        if types is not None:
            stmt = stmt.where(AnalysisIterationModel.iteration_type.in_(list(types)))
        stmt = stmt.order_by(
            AnalysisIterationModel.created_at.desc(),
            AnalysisIterationModel.sequence.desc(),
        ).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_in_session(
        self,
        session: AsyncSession,
        session_id: UUID,
        iteration_id: UUID,
    ) -> AnalysisIterationModel | None:
        """
        Retrieve an iteration only if it belongs to the given session.

        Args:
            session: Async database session
            session_id: Session UUID
            iteration_id: Iteration UUID

        Returns:
            The iteration, None if missing or in another session
        """
        stmt = select(AnalysisIterationModel).where(
            AnalysisIterationModel.id == iteration_id,
            AnalysisIterationModel.session_id == session_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


iteration_crud = IterationCRUD()
