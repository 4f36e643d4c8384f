"""
Analysis iteration ORM model.

Append-only history rows. Rows are written once and never updated.

Dependencies: sqlalchemy, labelcheck.boundary.db.base
System role: Iteration persistence for session context reconstruction
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from labelcheck.boundary.db.base import Base, UUIDMixin, utc_now
from labelcheck.models.iteration import IterationType


class AnalysisIterationModel(Base, UUIDMixin):
    """
    One immutable step of an analysis session.

    Attributes:
        id: UUID primary key (auto-generated)
        session_id: Owning session (cascade delete)
        sequence: Store-assigned position within the session, starting at 1
        iteration_type: Kind of step (IMAGE_ANALYSIS/TEXT_CHECK/CHAT_QUESTION/REVISED_ANALYSIS)
        input_data: JSON input payload, schema depends on iteration_type
        result_data: JSON result payload, schema depends on iteration_type
        parent_iteration_id: Optional non-owning link to an iteration in the same session
        file_ref: Optional reference to the uploaded artifact
        created_at: Insertion timestamp (UTC), never earlier than the previous row's

    Constraints:
        (session_id, sequence): UNIQUE; concurrent appends that pick the same
        sequence fail instead of interleaving silently
    """

    __tablename__ = "analysis_iterations"
    __table_args__ = (
        UniqueConstraint("session_id", "sequence", name="uq_iteration_session_sequence"),
    )

    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("analysis_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    iteration_type: Mapped[IterationType] = mapped_column(
        Enum(IterationType, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    input_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    result_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    parent_iteration_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("analysis_iterations.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
    )
    file_ref: Mapped[str | None] = mapped_column(String(1024), nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    session = relationship("AnalysisSessionModel", back_populates="iterations")
