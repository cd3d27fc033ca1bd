"""
Favorites service.
A favorite is one wishlist row, so the user's wishlist and the property's
favorited-by set always change together.
"""

from typing import Any, Dict, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.user import User
from app.repositories.property import PropertyRepository
from app.repositories.wishlist import WishlistRepository
from app.utils.exceptions import PropertyNotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


class FavoritesService:
    """Idempotent add/remove of saved listings."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.wishlist_repo = WishlistRepository(db_session)

    async def _require_property(self, property_id: uuid.UUID) -> None:
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))

    async def add_to_favorites(self, property_id: uuid.UUID, user: User) -> None:
        """
        Save a listing for the user. Saving twice is a no-op.

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        await self._require_property(property_id)

        if await self.wishlist_repo.get_item(user.id, property_id):
            logger.debug(f"Property {property_id} already in wishlist of {user.id}")
            return

        try:
            await self.wishlist_repo.create({"user_id": user.id, "property_id": property_id})
        except IntegrityError:
            # A concurrent request inserted the same pair first
            logger.info(f"Property {property_id} was added to wishlist of {user.id} concurrently")
            return

        logger.info(f"User {user.id} added property {property_id} to favorites")

    async def remove_from_favorites(self, property_id: uuid.UUID, user: User) -> None:
        """
        Remove a saved listing. Removing one that is not saved is a no-op.

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        await self._require_property(property_id)

        item = await self.wishlist_repo.get_item(user.id, property_id)
        if item is None:
            return

        await self.wishlist_repo.delete(item)
        logger.info(f"User {user.id} removed property {property_id} from favorites")

    async def check_favorite_status(self, property_id: uuid.UUID, user: User) -> bool:
        return await self.wishlist_repo.get_item(user.id, property_id) is not None

    async def get_wishlist(self, user: User) -> List[Dict[str, Any]]:
        """The user's saved listings, most recently added first."""
        items = await self.wishlist_repo.get_for_user(user.id)
        properties = await self.property_repo.get_by_ids([item.property_id for item in items])
        by_id = {property_obj.id: property_obj for property_obj in properties}

        return [
            {
                "property": by_id[item.property_id].to_dict(),
                "added_at": item.added_at.isoformat(),
            }
            for item in items
            if item.property_id in by_id
        ]
