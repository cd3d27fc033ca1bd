"""
Tests for the testimonial service.
Schemas and enums are reached through their modules, and the service under
an alias, so pytest does not mistake them for test classes.
"""

import uuid

import pytest

from app.models import testimonial as testimonial_models
from app.schemas import testimonial as testimonial_schemas
from app.services.testimonial import (
    TestimonialService as Service,
    INVALID_STATUS_MESSAGE,
    NOT_FOUND_MESSAGE,
    REQUIRED_FIELDS_MESSAGE
)
from app.utils.exceptions import BadRequestError, NotFoundError


Status = testimonial_models.TestimonialStatus
Kind = testimonial_models.TestimonialType


def submission(**overrides):
    data = {"name": "Sara", "text": "Found my flat in a week", "type": "property"}
    data.update(overrides)
    return testimonial_schemas.TestimonialCreate(**data)


@pytest.fixture
def testimonial_service(db_session) -> Service:
    return Service(db_session)


class TestAddTestimonial:
    """Submission rules."""

    @pytest.mark.asyncio
    async def test_created_pending(self, testimonial_service, public_property):
        testimonial = await testimonial_service.add_testimonial(submission(property_id=public_property.id))

        assert testimonial.status == Status.PENDING
        assert testimonial.property_id == public_property.id
        assert testimonial.to_dict()["type"] == "property"

    @pytest.mark.asyncio
    async def test_keeps_only_matching_reference(self, testimonial_service):
        agency_id = uuid.uuid4()

        testimonial = await testimonial_service.add_testimonial(
            submission(type="agency", agency_id=agency_id, property_id=uuid.uuid4())
        )

        assert testimonial.agency_id == agency_id
        assert testimonial.property_id is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["name", "text", "type"])
    async def test_required_fields(self, testimonial_service, missing):
        with pytest.raises(BadRequestError) as exc_info:
            await testimonial_service.add_testimonial(submission(**{missing: None}))

        assert exc_info.value.detail == REQUIRED_FIELDS_MESSAGE

    @pytest.mark.asyncio
    async def test_blank_name_is_missing(self, testimonial_service):
        with pytest.raises(BadRequestError):
            await testimonial_service.add_testimonial(submission(name="   "))


class TestListTestimonials:
    """Filtering and ordering."""

    @pytest.mark.asyncio
    async def test_filters(self, testimonial_service, public_property):
        first = await testimonial_service.add_testimonial(submission(property_id=public_property.id))
        await testimonial_service.add_testimonial(submission(type="agency", agency_id=uuid.uuid4()))
        await testimonial_service.update_testimonial_status(first.id, "approved")

        approved = await testimonial_service.get_testimonials(status=Status.APPROVED)
        agency = await testimonial_service.get_testimonials(type=Kind.AGENCY)
        for_property = await testimonial_service.get_testimonials(property_id=public_property.id)

        assert [t.id for t in approved] == [first.id]
        assert len(agency) == 1
        assert [t.id for t in for_property] == [first.id]

    @pytest.mark.asyncio
    async def test_newest_first(self, testimonial_service):
        older = await testimonial_service.add_testimonial(submission(name="Older"))
        newer = await testimonial_service.add_testimonial(submission(name="Newer"))

        testimonials = await testimonial_service.get_testimonials()

        assert [t.id for t in testimonials] == [newer.id, older.id]


class TestModerateTestimonial:
    """Status changes and deletion."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["approved", "rejected"])
    async def test_review_statuses(self, testimonial_service, status):
        testimonial = await testimonial_service.add_testimonial(submission())

        updated = await testimonial_service.update_testimonial_status(testimonial.id, status)

        assert updated.status.value == status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["pending", "published", None])
    async def test_invalid_status(self, testimonial_service, status):
        testimonial = await testimonial_service.add_testimonial(submission())

        with pytest.raises(BadRequestError) as exc_info:
            await testimonial_service.update_testimonial_status(testimonial.id, status)

        assert exc_info.value.detail == INVALID_STATUS_MESSAGE

    @pytest.mark.asyncio
    async def test_status_of_missing_testimonial(self, testimonial_service):
        with pytest.raises(NotFoundError) as exc_info:
            await testimonial_service.update_testimonial_status(uuid.uuid4(), "approved")

        assert exc_info.value.detail == NOT_FOUND_MESSAGE

    @pytest.mark.asyncio
    async def test_delete(self, testimonial_service):
        testimonial = await testimonial_service.add_testimonial(submission())

        await testimonial_service.delete_testimonial(testimonial.id)

        assert await testimonial_service.get_testimonials() == []

    @pytest.mark.asyncio
    async def test_delete_missing(self, testimonial_service):
        with pytest.raises(NotFoundError):
            await testimonial_service.delete_testimonial(uuid.uuid4())
