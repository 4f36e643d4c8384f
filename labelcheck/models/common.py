"""
Common response models.

Error envelope shared by every endpoint.

Dependencies: pydantic
System role: Common API response structures
"""

from typing import Any

from pydantic import BaseModel, Field

from labelcheck.core.exceptions import ErrorKind


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(description="Human-readable error message")
    code: ErrorKind = Field(description="Stable machine-readable error code")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")
