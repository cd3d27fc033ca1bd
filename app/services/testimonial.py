"""
Testimonial service for reviews of listings and agencies.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.testimonial import Testimonial, TestimonialStatus, TestimonialType
from app.repositories.testimonial import TestimonialRepository
from app.schemas.testimonial import TestimonialCreate
from app.utils.exceptions import BadRequestError, NotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "الاسم والرأي والنوع مطلوبين"
INVALID_STATUS_MESSAGE = "الحالة غير صحيحة"
NOT_FOUND_MESSAGE = "الرأي غير موجود"
DELETED_MESSAGE = "تم الحذف بنجاح"

# Moderation outcomes an admin may set
REVIEW_STATUSES = {TestimonialStatus.APPROVED.value, TestimonialStatus.REJECTED.value}


class TestimonialService:
    """Create, list, moderate and delete testimonials."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.testimonial_repo = TestimonialRepository(db_session)

    async def add_testimonial(self, data: TestimonialCreate) -> Testimonial:
        """
        Store a new pending testimonial. Only the reference matching the type is kept.

        Raises:
            BadRequestError: If name, text or type is missing
        """
        name = (data.name or "").strip()
        text = (data.text or "").strip()
        if not name or not text or data.type is None:
            raise BadRequestError(REQUIRED_FIELDS_MESSAGE)

        testimonial = await self.testimonial_repo.create({
            "name": name,
            "text": text,
            "image": data.image,
            "role": data.role,
            "type": data.type,
            "status": TestimonialStatus.PENDING,
            "property_id": data.property_id if data.type == TestimonialType.PROPERTY else None,
            "agency_id": data.agency_id if data.type == TestimonialType.AGENCY else None,
        })

        logger.info(f"Testimonial {testimonial.id} submitted ({testimonial.type.value})")
        return testimonial

    async def get_testimonials(
        self,
        status: Optional[TestimonialStatus] = None,
        type: Optional[TestimonialType] = None,
        property_id: Optional[uuid.UUID] = None,
        agency_id: Optional[uuid.UUID] = None
    ) -> List[Testimonial]:
        return await self.testimonial_repo.find(
            status=status,
            type=type,
            property_id=property_id,
            agency_id=agency_id
        )

    async def update_testimonial_status(self, testimonial_id: uuid.UUID, status: Optional[str]) -> Testimonial:
        """
        Approve or reject a testimonial.

        Raises:
            BadRequestError: If the status is not approved or rejected
            NotFoundError: If the testimonial does not exist
        """
        if status not in REVIEW_STATUSES:
            raise BadRequestError(INVALID_STATUS_MESSAGE)

        testimonial = await self._get(testimonial_id)
        testimonial.status = TestimonialStatus(status)
        await self.testimonial_repo.save(testimonial)

        logger.info(f"Testimonial {testimonial_id} marked {status}")
        return testimonial

    async def delete_testimonial(self, testimonial_id: uuid.UUID) -> None:
        """
        Raises:
            NotFoundError: If the testimonial does not exist
        """
        testimonial = await self._get(testimonial_id)
        await self.testimonial_repo.delete(testimonial)
        logger.info(f"Testimonial {testimonial_id} deleted")

    async def _get(self, testimonial_id: uuid.UUID) -> Testimonial:
        testimonial = await self.testimonial_repo.get_by_id(testimonial_id)
        if not testimonial:
            raise NotFoundError("Testimonial", detail=NOT_FOUND_MESSAGE)
        return testimonial
