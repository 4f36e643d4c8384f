"""
User ORM model.

Maps identities issued by the external authentication provider to
internal user ids.

Dependencies: sqlalchemy, labelcheck.boundary.db.base
System role: Caller identity mapping
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from labelcheck.boundary.db.base import Base, UUIDMixin, TimestampMixin


class UserModel(Base, UUIDMixin, TimestampMixin):
    """
    Internal user row.

    Attributes:
        id: UUID primary key (internal user id)
        external_user_id: Identifier issued by the authentication provider (unique)
        email: Optional contact email
        sessions: Analysis sessions owned by this user
    """

    __tablename__ = "users"

    external_user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, default=None)

    sessions = relationship(
        "AnalysisSessionModel",
        back_populates="user",
        cascade="all, delete-orphan",
    )
