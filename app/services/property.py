"""
Property listing service.
Handles public listing and search, details with view counting, the moderation
queue, most-viewed and owner listings, and similar-listing suggestions.
"""

from typing import Optional, List, Dict, Any, Mapping, NamedTuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.repositories.property import PropertyRepository
from app.models.property import Property, model_for_category, translate_status
from app.models.user import User
from app.services.similarity import rank_similar
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    InvalidCategoryError,
    PropertyNotFoundError
)
import uuid
import logging

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No properties found matching your criteria."


class PropertyPage(NamedTuple):
    """One page of listings plus what the response needs to describe it."""
    properties: List[Property]
    total: int
    pagination: Dict[str, Any]
    projection: Optional[List[str]]

    def serialize(self) -> List[Dict[str, Any]]:
        return [property_obj.to_dict(self.projection) for property_obj in self.properties]


class PropertyService:
    """
    Read side of the listings API.
    Public queries are restricted to approved and active listings.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)

    async def get_all_properties(self, params: Mapping[str, Any]) -> PropertyPage:
        """
        Public listing with filtering, keyword search, sorting, field selection and pagination.

        Raises:
            BadRequestError: If a filter value or paging parameter is invalid
        """
        return await self._run(params)

    async def search_properties(self, params: Mapping[str, Any]) -> PropertyPage:
        """
        Public keyword search; ``keyword`` or ``search`` matches title,
        description, city and address case-insensitively.
        """
        return await self._run(params)

    async def _run(self, params: Mapping[str, Any]) -> PropertyPage:
        # Each stage runs once; count and data share the filter and search predicates
        features = (
            self.property_repo.public_features(params)
            .filter()
            .search()
            .sort()
            .limit_fields()
            .paginate()
        )

        try:
            properties, total = await self.property_repo.run_features(features)
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to list properties: {e}")
            raise BadRequestError(f"Failed to list properties: {str(e)}")

        return PropertyPage(
            properties=properties,
            total=total,
            pagination=features.pagination(total),
            projection=features.projection
        )

    async def get_property_details(self, property_id: uuid.UUID) -> Property:
        """
        Fetch a listing with its people expanded and count the view.

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        await self.property_repo.increment_views(property_id)

        # Reload so the returned views include this request
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        logger.debug(f"Property {property_id} viewed ({property_obj.views} views)")
        return property_obj

    async def get_pending_properties(self, category: Optional[str] = None) -> List[Property]:
        """
        Listings awaiting moderation, optionally for one category.

        Raises:
            InvalidCategoryError: If the category is not sale, rent or student
        """
        if category:
            if model_for_category(category) is None:
                raise InvalidCategoryError(category)
            category = category.strip().lower()

        return await self.property_repo.get_pending(category)

    async def get_most_viewed_properties(self) -> List[Dict[str, Any]]:
        """
        Home-page carousel: the most viewed listings with the status shown in
        Arabic and the image URLs collected as ``sliderImages``.
        """
        properties = await self.property_repo.get_most_viewed(
            limit=settings.most_viewed_limit,
            public_only=settings.most_viewed_public_only
        )

        items = []
        for property_obj in properties:
            item = property_obj.to_dict()
            item["status"] = translate_status(property_obj.status.value)
            item["sliderImages"] = [image.url for image in property_obj.images]
            items.append(item)
        return items

    async def get_user_properties(self, user: User) -> List[Property]:
        """Every listing owned by the user, whatever its status."""
        return await self.property_repo.get_by_owner(user.id)

    async def get_similar_properties(self, property_id: uuid.UUID) -> List[Property]:
        """
        Public listings most similar to the given one.

        Raises:
            PropertyNotFoundError: If the reference property does not exist
        """
        reference = await self.property_repo.get_by_id(property_id)
        if not reference:
            raise PropertyNotFoundError(str(property_id))

        candidates = await self.property_repo.get_public(exclude_id=property_id)
        return rank_similar(reference, candidates, limit=settings.similar_properties_limit)
