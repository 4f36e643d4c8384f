"""
Session domain models and schemas.

Session records returned by the store and request/response schemas for
session operations.

Dependencies: pydantic
System role: Session API contracts
"""

import enum
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from labelcheck.models.iteration import IterationRecord


class SessionStatus(str, enum.Enum):
    """Lifecycle state of an analysis session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class SessionRecord(BaseModel):
    """Analysis session as seen by the core."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str | None = None
    status: SessionStatus
    created_at: datetime
    updated_at: datetime


class SessionWithIterations(BaseModel):
    """A session with its full, ordered iteration history."""

    session: SessionRecord
    iterations: list[IterationRecord] = Field(default_factory=list)


class ComplianceProgress(BaseModel):
    """Blocking issue counts for the first and latest analyses of a session."""

    session_id: uuid.UUID
    initial_issues: int
    current_issues: int
    resolved: bool = Field(description="True when the latest analysis has no blocking issues")
    analysis_count: int


class CreateSessionRequest(BaseModel):
    """Request schema for creating a new session."""

    title: str | None = Field(default=None, max_length=255, description="Optional label name")


class UpdateSessionStatusRequest(BaseModel):
    """Request schema for changing a session's lifecycle status."""

    status: SessionStatus
