"""
User CRUD operations.

Dependencies: sqlalchemy, labelcheck.boundary.db.models
System role: Caller identity lookup
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labelcheck.boundary.db.CRUD.base_crud import BaseCRUD
from labelcheck.boundary.db.models.user_model import UserModel


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel."""

    def __init__(self) -> None:
        """Initialize UserCRUD with UserModel."""
        super().__init__(UserModel)

    async def get_by_external_id(
        self,
        session: AsyncSession,
        external_user_id: str,
    ) -> UserModel | None:
        """
        Map an authentication-provider identity to the internal user row.

        Args:
            session: Async database session
            external_user_id: Identifier issued by the authentication provider

        Returns:
            UserModel if the identity is known, None otherwise
        """
        stmt = select(UserModel).where(UserModel.external_user_id == external_user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


user_crud = UserCRUD()
