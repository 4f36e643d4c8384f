"""
Regulatory document domain model.

Read-only reference content rendered into analysis prompts.

Dependencies: pydantic
System role: Regulatory reference contract
"""

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict


class RegulatoryDocument(BaseModel):
    """A federal/state regulation or guideline used as analysis context."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    title: str
    content: str
    description: str | None = None
    document_type: str | None = None
    jurisdiction: str | None = None
    source: str | None = None
    category: str | None = None
    effective_date: date | None = None
    is_active: bool = True
