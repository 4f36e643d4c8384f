"""
Regulatory document ORM model.

Reference regulation text maintained by administrators and read by the
analysis pipeline.

Dependencies: sqlalchemy, labelcheck.boundary.db.base
System role: Regulatory reference storage
"""

from datetime import date

from sqlalchemy import Boolean, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from labelcheck.boundary.db.base import Base, UUIDMixin, TimestampMixin


class RegulatoryDocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Regulation or guideline document.

    Attributes:
        title: Document title (e.g. '21 CFR 101 - Food Labeling')
        description: Short summary rendered before the requirements
        content: Full requirement text
        document_type: Kind of document (federal_law, guidance, state_law, ...)
        jurisdiction: Issuing jurisdiction (e.g. 'United States', 'California')
        source: Citation or URL of the source
        category: Optional grouping used for deterministic ordering
        effective_date: Date the requirements take effect
        is_active: Only active documents are used as analysis context
    """

    __tablename__ = "regulatory_documents"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    document_type: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    jurisdiction: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    source: Mapped[str | None] = mapped_column(String(1024), nullable=True, default=None)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None, index=True)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
