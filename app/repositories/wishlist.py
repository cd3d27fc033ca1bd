"""
Wishlist repository for user/property favorite memberships.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from app.repositories.base import BaseRepository
from app.models.wishlist import WishlistItem
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class WishlistRepository(BaseRepository[WishlistItem]):
    """Repository over the single membership row shared by both sides of a favorite."""

    def __init__(self, db: AsyncSession):
        super().__init__(WishlistItem, db)

    async def get_item(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[WishlistItem]:
        try:
            result = await self.db.execute(
                select(WishlistItem).where(
                    WishlistItem.user_id == user_id,
                    WishlistItem.property_id == property_id
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get wishlist item {user_id}/{property_id}: {e}")
            raise

    async def get_for_user(self, user_id: uuid.UUID) -> List[WishlistItem]:
        """A user's wishlist, most recently added first."""
        try:
            result = await self.db.execute(
                select(WishlistItem)
                .where(WishlistItem.user_id == user_id)
                .order_by(desc(WishlistItem.added_at))
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get wishlist for user {user_id}: {e}")
            raise
