"""
Analysis session ORM model.

One end-to-end compliance review of a single product label.

Dependencies: sqlalchemy, labelcheck.boundary.db.base
System role: Session persistence for iterative label analysis
"""

from uuid import UUID

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from labelcheck.boundary.db.base import Base, UUIDMixin, TimestampMixin
from labelcheck.models.session import SessionStatus


class AnalysisSessionModel(Base, UUIDMixin, TimestampMixin):
    """
    Analysis session owning an ordered iteration history.

    Attributes:
        id: UUID primary key (auto-generated)
        user_id: Owning user; every iteration in the session belongs to this user
        title: Optional label/product name shown in history lists
        status: Lifecycle state enum (IN_PROGRESS/COMPLETED/ARCHIVED)
        iterations: Iterations in this session (cascading delete)
        created_at: Session creation timestamp (UTC)
        updated_at: Touched whenever an iteration is appended

    Relationships:
        user: Many-to-one with UserModel
        iterations: One-to-many with AnalysisIterationModel (cascade delete on session removal)
    """

    __tablename__ = "analysis_sessions"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SessionStatus.IN_PROGRESS,
    )

    user = relationship("UserModel", back_populates="sessions")
    iterations = relationship(
        "AnalysisIterationModel",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AnalysisIterationModel.sequence",
    )
