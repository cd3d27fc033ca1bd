"""
Property repository for listing queries, moderation queues and detail fetches.
Builds query-feature pipelines over the polymorphic property table.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, update
from app.repositories.base import BaseRepository
from app.models.property import (
    Property,
    SaleProperty,
    RentProperty,
    StudentProperty,
    PropertyStatus,
)
from app.utils.query_features import QueryFeatures
from app.config import settings
from typing import Optional, List, Mapping, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

# Public query parameter name to column
FILTER_FIELDS = {
    "category": Property.category,
    "type": Property.property_type,
    "status": Property.status,
    "price": Property.price,
    "area": Property.area,
    "bedrooms": Property.bedrooms,
    "bathrooms": Property.bathrooms,
    "views": Property.views,
    "city": Property.city,
    "location.city": Property.city,
    "address": Property.address,
    "location.address": Property.address,
    "payment_method": SaleProperty.payment_method,
    "is_negotiable": SaleProperty.is_negotiable,
    "rental_period": RentProperty.rental_period,
    "is_furnished": RentProperty.is_furnished,
    "gender_preference": StudentProperty.gender_preference,
    "nearby_university": StudentProperty.nearby_university,
}

SEARCH_COLUMNS = (Property.title, Property.description, Property.city, Property.address)

SORT_FIELDS = {
    "price": Property.price,
    "created_at": Property.created_at,
    "updated_at": Property.updated_at,
    "views": Property.views,
    "area": Property.area,
    "bedrooms": Property.bedrooms,
    "title": Property.title,
}

PROJECTION_FIELDS = (
    "category", "title", "description", "price", "location", "type", "area",
    "bedrooms", "bathrooms", "images", "contact_info", "owner", "agent", "status",
    "is_approved", "is_active", "approved_by", "approved_at", "views",
    "favorited_by", "created_at", "updated_at",
    "payment_method", "is_negotiable", "rental_period", "deposit", "is_furnished",
    "gender_preference", "beds_available", "nearby_university",
)


def public_conditions() -> tuple:
    """Predicates every public listing query starts from."""
    return (Property.is_approved.is_(True), Property.is_active.is_(True))


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings over the polymorphic properties table.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    def public_features(self, params: Mapping[str, Any]) -> QueryFeatures:
        """Start a query-feature pipeline restricted to approved and active listings."""
        return QueryFeatures(
            Property,
            select(Property).where(*public_conditions()),
            params,
            filter_fields=FILTER_FIELDS,
            search_columns=SEARCH_COLUMNS,
            sort_fields=SORT_FIELDS,
            projection_fields=PROJECTION_FIELDS,
            default_limit=settings.default_page_size,
            max_limit=settings.max_page_size,
        )

    async def run_features(self, features: QueryFeatures) -> Tuple[List[Property], int]:
        """
        Execute a feature pipeline.

        Returns:
            Tuple of (page of properties, total matching count)
        """
        try:
            count_result = await self.db.execute(features.count_query())
            total_count = count_result.scalar()

            result = await self.db.execute(features.query)
            properties = list(result.scalars().all())

            logger.debug(f"Property query returned {len(properties)} of {total_count} total results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to run property query: {e}")
            raise

    async def get_property_with_details(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Get property with owner, agent, approver, images and favorites loaded.
        Identity-map instances are refreshed so callers see committed state.
        """
        try:
            query = (
                select(Property)
                .where(Property.id == property_id)
                .execution_options(populate_existing=True)
            )

            result = await self.db.execute(query)
            property_obj = result.scalar_one_or_none()

            if property_obj:
                logger.debug(f"Retrieved property with details: {property_id}")

            return property_obj
        except Exception as e:
            logger.error(f"Failed to get property with details {property_id}: {e}")
            raise

    async def increment_views(self, property_id: uuid.UUID) -> None:
        """Atomically bump the view counter in the database."""
        try:
            await self.db.execute(
                update(Property)
                .where(Property.id == property_id)
                .values(views=Property.views + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to increment views for property {property_id}: {e}")
            raise

    async def get_pending(self, category: Optional[str] = None) -> List[Property]:
        """Pending listings, newest first, optionally for one category."""
        try:
            query = select(Property).where(Property.status == PropertyStatus.PENDING)
            if category:
                query = query.where(Property.category == category)
            query = query.order_by(desc(Property.created_at))

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get pending properties: {e}")
            raise

    async def get_most_viewed(self, limit: int, public_only: bool = True) -> List[Property]:
        """Listings ordered by view count, highest first."""
        try:
            query = select(Property)
            if public_only:
                query = query.where(*public_conditions())
            query = query.order_by(desc(Property.views), desc(Property.created_at)).limit(limit)

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get most viewed properties: {e}")
            raise

    async def get_by_owner(self, owner_id: uuid.UUID) -> List[Property]:
        """All listings owned by a user regardless of status."""
        try:
            query = (
                select(Property)
                .where(Property.owner_id == owner_id)
                .order_by(desc(Property.created_at))
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get properties for owner {owner_id}: {e}")
            raise

    async def get_public(self, exclude_id: Optional[uuid.UUID] = None) -> List[Property]:
        """Every approved and active listing, oldest first."""
        try:
            query = select(Property).where(*public_conditions())
            if exclude_id is not None:
                query = query.where(Property.id != exclude_id)
            query = query.order_by(Property.created_at.asc(), Property.id.asc())

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get public properties: {e}")
            raise

    async def get_by_ids(self, property_ids: List[uuid.UUID]) -> List[Property]:
        """Listings for the given ids, in no particular order."""
        if not property_ids:
            return []
        try:
            result = await self.db.execute(
                select(Property)
                .where(Property.id.in_(property_ids))
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get properties by ids: {e}")
            raise
