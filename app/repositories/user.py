"""
Account storage: registration, lookup by email and resolution of the
agent accounts that listings can be assigned to.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.repositories.base import BaseRepository
from app.models.user import User, UserRole
from typing import Optional, Dict, Any
import logging
import uuid

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user accounts."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Store a new account with a normalized email and a bcrypt hash.

        Args:
            user_data: Must include email, password and user_name;
                       phone_number, role and is_active are optional

        Raises:
            ValueError: If the email or password is rejected
        """
        data = dict(user_data)
        email = User.validate_email_format(data.pop("email"))
        hashed_password = User.hash_password(data.pop("password"))

        data.setdefault("role", UserRole.USER)
        data.setdefault("is_active", True)

        user = await self.create({**data, "email": email, "hashed_password": hashed_password})
        logger.info(f"Created {user.role.value} account {user.email} (ID: {user.id})")
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup; emails are stored lowercase."""
        result = await self.db.execute(select(User).where(User.email == email.lower().strip()))
        return result.scalar_one_or_none()

    async def get_privileged(self, user_id: uuid.UUID) -> Optional[User]:
        """
        Active agent or admin with the given ID, or None.
        Listings can only be assigned to such accounts.
        """
        result = await self.db.execute(
            select(User).where(
                User.id == user_id,
                User.role.in_([UserRole.AGENT, UserRole.ADMIN]),
                User.is_active.is_(True)
            )
        )
        return result.scalar_one_or_none()
