"""
Testimonial API endpoints. Anyone may submit; moderation is admin only.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from uuid import UUID

from app.models.testimonial import TestimonialStatus, TestimonialType
from app.models.user import User
from app.schemas.common import APIResponse, envelope
from app.schemas.testimonial import TestimonialCreate, TestimonialStatusUpdate
from app.services.error_handler import error_responses
from app.services.testimonial import TestimonialService, DELETED_MESSAGE
from app.utils.dependencies import get_current_admin_user, get_testimonial_service


router = APIRouter(prefix="/testimonials", tags=["Testimonials"])


@router.post(
    "",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit testimonial",
    description="Name, text and type are required; the reference matching the type is kept",
    responses=error_responses(400)
)
async def add_testimonial(
    data: TestimonialCreate,
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
) -> APIResponse:
    testimonial = await testimonial_service.add_testimonial(data)
    return envelope(testimonial.to_dict())


@router.get(
    "",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="List testimonials",
    description="Newest first, optionally filtered",
    responses=error_responses(400)
)
async def list_testimonials(
    status: Optional[TestimonialStatus] = Query(None),
    type: Optional[TestimonialType] = Query(None),
    property_id: Optional[UUID] = Query(None, alias="propertyId"),
    agency_id: Optional[UUID] = Query(None, alias="agencyId"),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
) -> APIResponse:
    testimonials = await testimonial_service.get_testimonials(
        status=status,
        type=type,
        property_id=property_id,
        agency_id=agency_id
    )
    return envelope([testimonial.to_dict() for testimonial in testimonials], count=len(testimonials))


@router.patch(
    "/{testimonial_id}/status",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Approve or reject testimonial",
    responses=error_responses(400, 401, 403, 404)
)
async def update_testimonial_status(
    testimonial_id: UUID,
    data: TestimonialStatusUpdate,
    admin: User = Depends(get_current_admin_user),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
) -> APIResponse:
    testimonial = await testimonial_service.update_testimonial_status(testimonial_id, data.status)
    return envelope(testimonial.to_dict())


@router.delete(
    "/{testimonial_id}",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Delete testimonial",
    responses=error_responses(400, 401, 403, 404)
)
async def delete_testimonial(
    testimonial_id: UUID,
    admin: User = Depends(get_current_admin_user),
    testimonial_service: TestimonialService = Depends(get_testimonial_service)
) -> APIResponse:
    await testimonial_service.delete_testimonial(testimonial_id)
    return envelope(None, DELETED_MESSAGE)
