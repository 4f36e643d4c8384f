"""
Session API endpoints.

Routes:
- POST /sessions - Create new session
- GET /sessions - List the caller's sessions
- GET /sessions/{id} - Get session with its iteration history
- GET /sessions/{id}/progress - Blocking issues in the first and latest analyses
- PATCH /sessions/{id}/status - Change session status

Dependencies: labelcheck.application.services.session_service, labelcheck.models
System role: Session management HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from labelcheck.api.deps import get_access_context, get_session_service
from labelcheck.application.services.session_service import SessionService
from labelcheck.core.access import AccessContext
from labelcheck.models.session import (
    ComplianceProgress,
    CreateSessionRequest,
    SessionRecord,
    SessionStatus,
    SessionWithIterations,
    UpdateSessionStatusRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionRecord, status_code=201)
async def create_session(
    request: CreateSessionRequest,
    access: AccessContext = Depends(get_access_context),
    session_service: SessionService = Depends(get_session_service),
) -> SessionRecord:
    """
    Create a new analysis session.

    Args:
        request: CreateSessionRequest with optional title
        access: Caller access context
        session_service: Injected SessionService

    Returns:
        SessionRecord: Created session
    """
    return await session_service.create_session(access, title=request.title)


@router.get("", response_model=list[SessionRecord])
async def list_sessions(
    status: SessionStatus | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    access: AccessContext = Depends(get_access_context),
    session_service: SessionService = Depends(get_session_service),
) -> list[SessionRecord]:
    """
    List the caller's sessions, most recently active first.

    Args:
        status: Optional status filter
        limit: Maximum number of sessions (default 50)
        offset: Number to skip (default 0)
        access: Caller access context
        session_service: Injected SessionService

    Returns:
        list[SessionRecord]: Sessions owned by the caller
    """
    return await session_service.list_sessions(access, status=status, limit=limit, offset=offset)


@router.get("/{session_id}", response_model=SessionWithIterations)
async def get_session(
    session_id: UUID,
    access: AccessContext = Depends(get_access_context),
    session_service: SessionService = Depends(get_session_service),
) -> SessionWithIterations:
    """Get a session with its typed iteration history."""
    return await session_service.get_session_with_iterations(session_id, access)


@router.get("/{session_id}/progress", response_model=ComplianceProgress)
async def get_progress(
    session_id: UUID,
    access: AccessContext = Depends(get_access_context),
    session_service: SessionService = Depends(get_session_service),
) -> ComplianceProgress:
    """Compare blocking issues between the first and latest analyses."""
    return await session_service.get_compliance_progress(session_id, access)


@router.patch("/{session_id}/status", response_model=SessionRecord)
async def update_status(
    session_id: UUID,
    request: UpdateSessionStatusRequest,
    access: AccessContext = Depends(get_access_context),
    session_service: SessionService = Depends(get_session_service),
) -> SessionRecord:
    """
    Change a session's lifecycle status.

    Args:
        session_id: Session UUID
        request: UpdateSessionStatusRequest
        access: Caller access context
        session_service: Injected SessionService

    Returns:
        SessionRecord: Updated session
    """
    logger.info(f"{__name__}:update_status - {session_id} -> {request.status.value}")
    return await session_service.update_status(session_id, request.status, access)
