"""
Session service orchestrator.

Append-only session/iteration store: session lifecycle, ordered iteration
history, ownership enforcement and compliance progress. Every operation
takes an AccessContext; ownership is checked before any write.

Dependencies: labelcheck.boundary.db.CRUD, sqlalchemy
System role: Session/iteration store used by the analysis flow and session routes
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from labelcheck.boundary.db.base import as_utc, utc_now
from labelcheck.boundary.db.CRUD import iteration_crud, session_crud, user_crud
from labelcheck.boundary.db.models import AnalysisIterationModel, AnalysisSessionModel
from labelcheck.core.access import AccessContext
from labelcheck.core.analysis.comparison import count_blocking_issues
from labelcheck.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    SessionNotFoundError,
    ValidationError,
)
from labelcheck.models.iteration import IterationRecord, IterationType, check_payload_types
from labelcheck.models.session import (
    ComplianceProgress,
    SessionRecord,
    SessionStatus,
    SessionWithIterations,
)

logger = logging.getLogger(__name__)


def _session_record(row: AnalysisSessionModel) -> SessionRecord:
    record = SessionRecord.model_validate(row)
    return record.model_copy(
        update={"created_at": as_utc(row.created_at), "updated_at": as_utc(row.updated_at)}
    )


def _iteration_record(row: AnalysisIterationModel) -> IterationRecord:
    record = IterationRecord.from_row(row)
    return record.model_copy(update={"created_at": as_utc(row.created_at)})


class SessionService:
    """Session/iteration store."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now) -> None:
        """
        Initialize session service with async database session.

        Args:
            db: Async SQLAlchemy session
            clock: Source of aware UTC timestamps for new iterations
        """
        self.db = db
        self._clock = clock

    async def lookup_user_by_external_id(self, external_user_id: str) -> UUID:
        """
        Map an authentication-provider identity to an internal user id.

        Args:
            external_user_id: Identity from the authentication collaborator

        Returns:
            UUID: Internal user id

        Raises:
            NotFoundError: Identity unknown
            PersistenceError: Store failure
        """
        try:
            user = await user_crud.get_by_external_id(self.db, external_user_id)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to look up user", {"error_type": type(e).__name__}) from e
        if user is None:
            raise NotFoundError("User")
        return user.id

    async def create_session(self, access: AccessContext, title: str | None = None) -> SessionRecord:
        """
        Create a new in-progress session owned by the caller.

        Args:
            access: Caller access context
            title: Optional label name

        Returns:
            SessionRecord: Created session

        Raises:
            PersistenceError: Store failure
        """
        try:
            row = await session_crud.create(
                self.db,
                user_id=access.user_id,
                title=title,
                status=SessionStatus.IN_PROGRESS,
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{__name__}:create_session - Failed", exc_info=True)
            raise PersistenceError("Failed to create session", {"error_type": type(e).__name__}) from e

        logger.info(f"{__name__}:create_session - Created session {row.id}")
        return _session_record(row)

    async def list_sessions(
        self,
        access: AccessContext,
        status: SessionStatus | None = None,
        limit: int | None = 50,
        offset: int = 0,
    ) -> list[SessionRecord]:
        """
        List the caller's sessions, most recently active first.

        Args:
            access: Caller access context
            status: Optional lifecycle filter
            limit: Maximum number of sessions
            offset: Number of sessions to skip

        Returns:
            list[SessionRecord]: Sessions owned by access.user_id
        """
        try:
            rows = await session_crud.list_for_user(
                self.db, access.user_id, status=status, limit=limit, offset=offset
            )
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to list sessions", {"error_type": type(e).__name__}) from e
        return [_session_record(row) for row in rows]

    async def get_session_with_iterations(
        self,
        session_id: UUID,
        access: AccessContext,
    ) -> SessionWithIterations:
        """
        Load a session and its full iteration history.

        Args:
            session_id: Session UUID
            access: Caller access context

        Returns:
            SessionWithIterations: Session with iterations ordered by (created_at, sequence)

        Raises:
            SessionNotFoundError: Session does not exist
            AuthorizationError: Caller does not own the session (non-elevated)
            PersistenceError: Store failure
        """
        session_row = await self._get_authorized_session(session_id, access)
        try:
            rows = await iteration_crud.list_for_session(self.db, session_id)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load iterations", {"session_id": str(session_id), "error_type": type(e).__name__}
            ) from e

        return SessionWithIterations(
            session=_session_record(session_row),
            iterations=[_iteration_record(row) for row in rows],
        )

    async def add_iteration(
        self,
        session_id: UUID,
        iteration_type: IterationType,
        input: BaseModel,
        result: BaseModel,
        access: AccessContext,
        file_ref: str | None = None,
        parent_iteration_id: UUID | None = None,
    ) -> IterationRecord:
        """
        Append one immutable iteration to a session.

        The store assigns the next per-session sequence and a created_at no
        earlier than the previous iteration's, then touches the session's
        updated_at. The insert is committed as a single unit.

        Args:
            session_id: Session UUID
            iteration_type: Kind of step
            input: Input payload variant for iteration_type
            result: Result payload variant for iteration_type
            access: Caller access context
            file_ref: Optional reference to the uploaded artifact
            parent_iteration_id: Optional iteration in the same session this one follows

        Returns:
            IterationRecord: Stored iteration

        Raises:
            SessionNotFoundError: Session does not exist
            AuthorizationError: Caller does not own the session (non-elevated); nothing is written
            ValidationError: Parent iteration missing or in another session
            PersistenceError: Store failure, including a lost race on the sequence number
        """
        check_payload_types(iteration_type, input, result)
        await self._get_authorized_session(session_id, access)

        try:
            if parent_iteration_id is not None:
                parent = await iteration_crud.get_in_session(self.db, session_id, parent_iteration_id)
                if parent is None:
                    raise ValidationError(
                        "Parent iteration does not belong to this session",
                        field="parent_iteration_id",
                        details={"parent_iteration_id": str(parent_iteration_id)},
                    )

            last = await iteration_crud.get_last(self.db, session_id)
            created_at = self._clock()
            sequence = 1
            if last is not None:
                created_at = max(created_at, as_utc(last.created_at))
                sequence = last.sequence + 1

            row = await iteration_crud.create(
                self.db,
                session_id=session_id,
                sequence=sequence,
                iteration_type=iteration_type,
                input_data=input.model_dump(mode="json"),
                result_data=result.model_dump(mode="json"),
                parent_iteration_id=parent_iteration_id,
                file_ref=file_ref,
                created_at=created_at,
            )
            await session_crud.touch(self.db, session_id, created_at)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"{__name__}:add_iteration - Failed to write iteration",
                exc_info=True,
                extra={"session_id": str(session_id), "iteration_type": iteration_type.value},
            )
            raise PersistenceError(
                "Failed to save iteration",
                {"session_id": str(session_id), "error_type": type(e).__name__},
            ) from e

        logger.info(
            f"{__name__}:add_iteration - Added {iteration_type.value} #{sequence} to session {session_id}"
        )
        return _iteration_record(row)

    async def get_latest_iteration(
        self,
        session_id: UUID,
        access: AccessContext,
        types: Iterable[IterationType] | None = None,
    ) -> IterationRecord | None:
        """
        Return the most recent iteration, optionally of given types.

        Args:
            session_id: Session UUID
            access: Caller access context
            types: Iteration types to consider (None for all)

        Returns:
            IterationRecord | None: Latest by (created_at, sequence)
        """
        await self._get_authorized_session(session_id, access)
        try:
            row = await iteration_crud.get_latest(self.db, session_id, types)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to load iteration", {"error_type": type(e).__name__}) from e
        return _iteration_record(row) if row is not None else None

    async def update_status(
        self,
        session_id: UUID,
        status: SessionStatus,
        access: AccessContext,
    ) -> SessionRecord:
        """
        Change a session's lifecycle status.

        Args:
            session_id: Session UUID
            status: New status
            access: Caller access context

        Returns:
            SessionRecord: Updated session
        """
        await self._get_authorized_session(session_id, access)
        try:
            row = await session_crud.update_by_id(self.db, session_id, status=status, updated_at=self._clock())
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Failed to update session", {"error_type": type(e).__name__}) from e
        if row is None:
            raise SessionNotFoundError(str(session_id))
        return _session_record(row)

    async def get_compliance_progress(
        self,
        session_id: UUID,
        access: AccessContext,
    ) -> ComplianceProgress:
        """
        Compare blocking issues between the first and latest analyses.

        Args:
            session_id: Session UUID
            access: Caller access context

        Returns:
            ComplianceProgress: Initial and current issue counts; resolved once none remain
        """
        history = await self.get_session_with_iterations(session_id, access)
        analyses = sorted(
            (it for it in history.iterations if it.is_analysis and it.report is not None),
            key=lambda it: it.order_key,
        )
        if not analyses:
            return ComplianceProgress(
                session_id=session_id, initial_issues=0, current_issues=0, resolved=False, analysis_count=0
            )

        initial = count_blocking_issues(analyses[0].report)
        current = count_blocking_issues(analyses[-1].report)
        return ComplianceProgress(
            session_id=session_id,
            initial_issues=initial,
            current_issues=current,
            resolved=current == 0,
            analysis_count=len(analyses),
        )

    async def _get_authorized_session(
        self,
        session_id: UUID,
        access: AccessContext,
    ) -> AnalysisSessionModel:
        try:
            row = await session_crud.get_by_id(self.db, session_id)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load session", {"session_id": str(session_id), "error_type": type(e).__name__}
            ) from e

        if row is None:
            raise SessionNotFoundError(str(session_id))

        if not access.can_access(row.user_id):
            logger.warning(
                f"{__name__}:_get_authorized_session - Access denied",
                extra={"session_id": str(session_id), "user_id": str(access.user_id)},
            )
            raise AuthorizationError("Access denied to this session", {"session_id": str(session_id)})

        if access.elevated and row.user_id != access.user_id:
            logger.info(
                f"{__name__}:_get_authorized_session - Elevated access to session {session_id}",
                extra={"user_id": str(access.user_id), "reason": access.reason},
            )
        return row
