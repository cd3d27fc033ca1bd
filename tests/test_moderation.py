"""
Tests for the moderation workflow: submission, edits, deletion, approval and denial.
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.orm.exc import StaleDataError

from app.models.property import PropertyStatus, RentProperty
from app.schemas.property import ApproveRequest, PropertyCreate, PropertyUpdate
from app.services.email import APPROVAL_SUBJECT, DENIAL_SUBJECT
from app.models.image import PropertyImage
from app.services.moderation import ModerationService, normalize_images
from app.utils.exceptions import (
    BadRequestError,
    ConcurrentModificationError,
    FileUploadError,
    ForbiddenError,
    InvalidCategoryError,
    PropertyNotFoundError
)
from tests.conftest import FakeEmailService, PropertyFactory, UserFactory, make_upload, png_bytes


@pytest.fixture
def moderation_service(db_session, image_storage, email_service) -> ModerationService:
    return ModerationService(db_session, image_storage, email_service)


def rent_submission(**overrides) -> PropertyCreate:
    data = {
        "category": "rent",
        "title": "Furnished flat in Maadi",
        "price": Decimal("7000"),
        "location": {"city": "Cairo", "address": "Road 9"},
        "type": "شقة",
        "bedrooms": 2,
        "contact_info": {"name": "Ahmed", "email": "ahmed@example.com"},
        "rental_period": "monthly",
        "deposit": Decimal("7000"),
        "payment_method": "cash",
    }
    data.update(overrides)
    return PropertyCreate(**data)


def stored_file(storage, external_id: str):
    return storage.base_dir / external_id


class TestNormalizeImages:
    """Main-image and ordering rules."""

    def test_first_image_becomes_main(self):
        images = normalize_images([PropertyImage(external_id="a", url="u"), PropertyImage(external_id="b", url="u")])

        assert [image.is_main for image in images] == [True, False]
        assert [image.display_order for image in images] == [0, 1]

    def test_only_first_flagged_image_stays_main(self):
        images = normalize_images([
            PropertyImage(external_id="a", url="u", is_main=False),
            PropertyImage(external_id="b", url="u", is_main=True),
            PropertyImage(external_id="c", url="u", is_main=True),
        ])

        assert [image.is_main for image in images] == [False, True, False]

    def test_empty_list(self):
        assert normalize_images([]) == []


class TestAddProperty:
    """Listing submission."""

    @pytest.mark.asyncio
    async def test_regular_user_submission_is_pending(self, moderation_service, test_user, image_storage):
        property_obj = await moderation_service.add_property(
            rent_submission(), [make_upload("front.png"), make_upload("kitchen.png", png_bytes("blue"))], test_user
        )

        assert isinstance(property_obj, RentProperty)
        assert property_obj.status == PropertyStatus.PENDING
        assert property_obj.is_approved is False
        assert property_obj.is_active is False
        assert property_obj.owner_id == test_user.id
        assert [image.is_main for image in property_obj.images] == [True, False]
        for image in property_obj.images:
            assert stored_file(image_storage, image.external_id).exists()
            assert image.url == f"/media/properties/{image.external_id}"

    @pytest.mark.asyncio
    async def test_agent_submission_is_published(self, moderation_service, test_agent):
        property_obj = await moderation_service.add_property(rent_submission(), [], test_agent)

        assert property_obj.status == PropertyStatus.AVAILABLE
        assert property_obj.is_public
        assert property_obj.approved_by_id == test_agent.id
        assert property_obj.approved_at is not None

    @pytest.mark.asyncio
    async def test_only_category_fields_are_stored(self, moderation_service, test_user):
        property_obj = await moderation_service.add_property(rent_submission(), [], test_user)
        data = property_obj.to_dict()

        assert data["rental_period"] == "monthly"
        assert data["deposit"] == 7000.0
        assert "payment_method" not in data
        assert data["contact_info"]["email"] == "ahmed@example.com"
        assert data["location"]["city"] == "Cairo"

    @pytest.mark.asyncio
    async def test_invalid_category(self, moderation_service, test_user):
        with pytest.raises(InvalidCategoryError):
            await moderation_service.add_property(rent_submission(category="castle"), [], test_user)

    @pytest.mark.asyncio
    async def test_agent_must_be_privileged(self, moderation_service, test_user):
        with pytest.raises(BadRequestError, match="agent"):
            await moderation_service.add_property(rent_submission(agent_id=test_user.id), [], test_user)

    @pytest.mark.asyncio
    async def test_assigned_agent(self, moderation_service, test_user, test_agent):
        property_obj = await moderation_service.add_property(rent_submission(agent_id=test_agent.id), [], test_user)

        assert property_obj.agent_id == test_agent.id
        assert property_obj.to_dict()["agent"]["email"] == test_agent.email

    @pytest.mark.asyncio
    async def test_rejected_upload_creates_nothing(
        self, moderation_service, test_user, property_repository, image_storage
    ):
        uploads = [make_upload("ok.png"), make_upload("bad.png", b"not an image")]

        with pytest.raises(FileUploadError):
            await moderation_service.add_property(rent_submission(), uploads, test_user)

        assert await property_repository.count() == 0
        assert list(image_storage.base_dir.iterdir()) == []


class TestUpdateProperty:
    """Edits by owners, agents and admins."""

    @pytest.mark.asyncio
    async def test_owner_updates_fields(self, moderation_service, pending_property, test_user):
        updated = await moderation_service.update_property(
            pending_property.id,
            PropertyUpdate(title="Renovated villa", location={"address": "New Cairo"}, payment_method="installments"),
            [],
            test_user
        )

        assert updated.title == "Renovated villa"
        assert updated.address == "New Cairo"
        assert updated.city == "Cairo"
        assert updated.payment_method == "installments"

    @pytest.mark.asyncio
    async def test_required_fields_cannot_be_cleared(self, moderation_service, pending_property, test_user):
        updated = await moderation_service.update_property(
            pending_property.id, PropertyUpdate(title=None, price=None, location={"city": None}), [], test_user
        )

        assert updated.title == "Pending villa"
        assert updated.price == Decimal("2500000")
        assert updated.city == "Cairo"

    @pytest.mark.asyncio
    async def test_foreign_category_fields_are_ignored(self, moderation_service, pending_property, test_user):
        updated = await moderation_service.update_property(
            pending_property.id, PropertyUpdate(deposit=Decimal("100")), [], test_user
        )

        assert "deposit" not in updated.to_dict()

    @pytest.mark.asyncio
    async def test_stranger_cannot_update(self, moderation_service, pending_property, user_repository):
        stranger = await UserFactory.create_user(user_repository)

        with pytest.raises(ForbiddenError, match="not authorized to update"):
            await moderation_service.update_property(pending_property.id, PropertyUpdate(title="Mine now"), [], stranger)

    @pytest.mark.asyncio
    async def test_unassigned_agent_cannot_update(self, moderation_service, pending_property, test_agent):
        with pytest.raises(ForbiddenError):
            await moderation_service.update_property(pending_property.id, PropertyUpdate(title="Nope"), [], test_agent)

    @pytest.mark.asyncio
    async def test_assigned_agent_can_update(self, db_session, moderation_service, test_user, test_agent):
        property_obj = await PropertyFactory.create_property(db_session, test_user, agent_id=test_agent.id)

        updated = await moderation_service.update_property(property_obj.id, PropertyUpdate(bedrooms=4), [], test_agent)

        assert updated.bedrooms == 4

    @pytest.mark.asyncio
    async def test_admin_can_update(self, moderation_service, pending_property, test_admin):
        updated = await moderation_service.update_property(
            pending_property.id, PropertyUpdate(price=Decimal("2400000")), [], test_admin
        )

        assert updated.price == Decimal("2400000")

    @pytest.mark.asyncio
    async def test_missing_property(self, moderation_service, test_admin):
        with pytest.raises(PropertyNotFoundError):
            await moderation_service.update_property(uuid.uuid4(), PropertyUpdate(), [], test_admin)

    @pytest.mark.asyncio
    async def test_uploads_are_appended(self, moderation_service, test_user):
        created = await moderation_service.add_property(rent_submission(), [make_upload("a.png")], test_user)
        first_id = created.images[0].external_id

        updated = await moderation_service.update_property(
            created.id, PropertyUpdate(), [make_upload("b.png")], test_user
        )

        assert [image.external_id for image in updated.images][0] == first_id
        assert len(updated.images) == 2
        assert updated.main_image.external_id == first_id

    @pytest.mark.asyncio
    async def test_images_to_delete_purges_storage(self, moderation_service, test_user, image_storage):
        created = await moderation_service.add_property(
            rent_submission(), [make_upload("a.png"), make_upload("b.png")], test_user
        )
        main_id, other_id = [image.external_id for image in created.images]

        updated = await moderation_service.update_property(
            created.id, PropertyUpdate(images_to_delete=[main_id, main_id, "unknown.png"]), [], test_user
        )

        assert [image.external_id for image in updated.images] == [other_id]
        assert updated.images[0].is_main is True
        assert not stored_file(image_storage, main_id).exists()
        assert stored_file(image_storage, other_id).exists()

    @pytest.mark.asyncio
    async def test_managed_image_list(self, moderation_service, test_user, image_storage):
        created = await moderation_service.add_property(
            rent_submission(), [make_upload("a.png"), make_upload("b.png")], test_user
        )
        first_id, second_id = [image.external_id for image in created.images]

        updated = await moderation_service.update_property(
            created.id,
            PropertyUpdate(images=[{"external_id": second_id, "is_main": True}]),
            [make_upload("c.png")],
            test_user
        )

        external_ids = [image.external_id for image in updated.images]
        assert len(external_ids) == 2
        assert external_ids[1] == second_id
        assert updated.main_image.external_id == second_id
        assert not stored_file(image_storage, first_id).exists()

    @pytest.mark.asyncio
    async def test_concurrent_modification(self, moderation_service, pending_property, test_user, monkeypatch):
        async def stale_save(property_obj):
            raise StaleDataError("version mismatch")

        monkeypatch.setattr(moderation_service.property_repo, "save", stale_save)

        with pytest.raises(ConcurrentModificationError):
            await moderation_service.update_property(pending_property.id, PropertyUpdate(title="Race"), [], test_user)


class TestDeleteProperty:
    """Owner deletion."""

    @pytest.mark.asyncio
    async def test_owner_deletes_listing_and_images(
        self, moderation_service, test_user, property_repository, image_storage
    ):
        created = await moderation_service.add_property(rent_submission(), [make_upload("a.png")], test_user)
        external_id = created.images[0].external_id

        await moderation_service.delete_property(created.id, test_user)

        assert await property_repository.get_by_id(created.id) is None
        assert not stored_file(image_storage, external_id).exists()

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete(self, moderation_service, public_property, test_user):
        with pytest.raises(ForbiddenError, match="not authorized to delete"):
            await moderation_service.delete_property(public_property.id, test_user)


class TestApproveAndDeny:
    """Admin decisions and notices."""

    @pytest.mark.asyncio
    async def test_approve_publishes_and_notifies(
        self, moderation_service, pending_property, test_admin, email_service
    ):
        approved = await moderation_service.approve_property(pending_property.id, ApproveRequest(), test_admin)

        assert approved.status == PropertyStatus.AVAILABLE
        assert approved.is_public
        assert approved.approved_by_id == test_admin.id
        assert approved.to_dict()["approved_by"]["email"] == test_admin.email
        assert email_service.sent[0]["to"] == "owner@example.com"
        assert email_service.sent[0]["subject"] == APPROVAL_SUBJECT
        assert "Pending villa" in email_service.sent[0]["html"]

    @pytest.mark.asyncio
    async def test_approve_with_overrides(self, moderation_service, pending_property, test_admin):
        approved = await moderation_service.approve_property(
            pending_property.id, ApproveRequest(status="sold", is_active=False), test_admin
        )

        assert approved.status == PropertyStatus.SOLD
        assert approved.is_active is False
        assert approved.is_approved is True

    @pytest.mark.asyncio
    async def test_approve_survives_mail_failure(self, db_session, image_storage, pending_property, test_admin):
        service = ModerationService(db_session, image_storage, FakeEmailService(raise_error=True))

        approved = await service.approve_property(pending_property.id, ApproveRequest(), test_admin)

        assert approved.is_public

    @pytest.mark.asyncio
    async def test_approve_missing(self, moderation_service, test_admin):
        with pytest.raises(PropertyNotFoundError):
            await moderation_service.approve_property(uuid.uuid4(), ApproveRequest(), test_admin)

    @pytest.mark.asyncio
    async def test_deny_notifies_then_deletes(
        self, moderation_service, pending_property, test_admin, email_service, property_repository
    ):
        await moderation_service.deny_property(pending_property.id, "Photos are missing", test_admin)

        assert await property_repository.get_by_id(pending_property.id) is None
        assert email_service.sent[0]["subject"] == DENIAL_SUBJECT
        assert "Photos are missing" in email_service.sent[0]["html"]

    @pytest.mark.asyncio
    async def test_deny_falls_back_to_owner_address(
        self, db_session, moderation_service, test_user, test_admin, email_service
    ):
        property_obj = await PropertyFactory.create_property(db_session, test_user, public=False, contact_email=None)

        await moderation_service.deny_property(property_obj.id, None, test_admin)

        assert email_service.sent[0]["to"] == test_user.email
        assert "غير محدد" in email_service.sent[0]["html"]

    @pytest.mark.asyncio
    async def test_deny_deletes_even_when_mail_fails(
        self, db_session, image_storage, pending_property, test_admin, property_repository
    ):
        service = ModerationService(db_session, image_storage, FakeEmailService(succeed=False))

        await service.deny_property(pending_property.id, "Duplicate", test_admin)

        assert await property_repository.get_by_id(pending_property.id) is None
