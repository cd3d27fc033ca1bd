"""
Testimonial repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.base import BaseRepository
from app.models.testimonial import Testimonial, TestimonialStatus, TestimonialType
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class TestimonialRepository(BaseRepository[Testimonial]):
    """Repository for testimonials about listings and agencies."""

    def __init__(self, db: AsyncSession):
        super().__init__(Testimonial, db)

    async def find(
        self,
        status: Optional[TestimonialStatus] = None,
        type: Optional[TestimonialType] = None,
        property_id: Optional[uuid.UUID] = None,
        agency_id: Optional[uuid.UUID] = None
    ) -> List[Testimonial]:
        """Testimonials matching every given filter, newest first."""
        return await self.get_multi(
            filters={
                "status": status,
                "type": type,
                "property_id": property_id,
                "agency_id": agency_id,
            },
            order_by="-created_at"
        )
