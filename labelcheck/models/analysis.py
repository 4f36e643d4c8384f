"""
Analysis request/response schemas.

Dependencies: pydantic
System role: Analyze and chat API contracts
"""

import uuid

from pydantic import BaseModel, Field

from labelcheck.models.iteration import IterationType
from labelcheck.models.report import ComplianceReport


class TextAnalysisRequest(BaseModel):
    """Typed label content to check against an existing session."""

    session_id: uuid.UUID
    text: str = Field(description="Prospective label text")


class ChatRequest(BaseModel):
    """Follow-up question about a session's analyses."""

    session_id: uuid.UUID
    message: str = Field(min_length=1, description="User question")
    parent_iteration_id: uuid.UUID | None = Field(
        default=None, description="Iteration this question follows up on"
    )


class AnalysisResponse(BaseModel):
    """
    Result of an image, PDF or text analysis.

    iteration_id is None and history_saved is False when the report was
    computed but could not be written to the session history.
    """

    session_id: uuid.UUID
    iteration_id: uuid.UUID | None
    analysis_type: IterationType
    history_saved: bool
    report: ComplianceReport


class ChatResponse(BaseModel):
    """Answer to a chat question."""

    response: str
    iteration_id: uuid.UUID | None
    history_saved: bool
