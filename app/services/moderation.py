"""
Moderation workflow for property listings.
Handles submission, owner edits and deletion, and admin approval or denial
with email notices to the listing contact.
"""

from typing import Any, Dict, List, Optional, Sequence
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from app.database import utcnow
from app.models.image import PropertyImage
from app.models.property import Property, PropertyStatus, model_for_category
from app.models.user import User
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.schemas.property import CategoryFields, PropertyCreate, PropertyUpdate, ApproveRequest
from app.services.email import (
    EmailService,
    APPROVAL_SUBJECT,
    DENIAL_SUBJECT,
    DEFAULT_DENIAL_REASON,
    approval_email,
    denial_email
)
from app.services.storage import ImageStorage, StoredImage
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    ConcurrentModificationError,
    ForbiddenError,
    InvalidCategoryError,
    PropertyNotFoundError
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Update fields that may not be cleared
REQUIRED_FIELDS = {"title", "price", "property_type"}

LOCATION_COLUMNS = {"city": "city", "address": "address", "latitude": "latitude", "longitude": "longitude"}
CONTACT_COLUMNS = {"name": "contact_name", "email": "contact_email", "phone": "contact_phone"}

# Every category-specific attribute across sale, rent and student listings
CATEGORY_FIELDS = frozenset(CategoryFields.model_fields)


def _new_images(stored: Sequence[StoredImage]) -> List[PropertyImage]:
    return [
        PropertyImage(external_id=image.external_id, url=image.url, is_main=False)
        for image in stored
    ]


def normalize_images(images: List[PropertyImage]) -> List[PropertyImage]:
    """
    Keep exactly one main image and number the list in order.
    The first flagged image stays main; with none flagged the first image becomes main.
    """
    main_seen = False
    for position, image in enumerate(images):
        image.display_order = position
        if image.is_main and not main_seen:
            main_seen = True
        else:
            image.is_main = False

    if images and not main_seen:
        images[0].is_main = True

    return images


class ModerationService:
    """
    Write side of the listings API.
    Regular users submit listings for review; agents and admins publish directly.
    """

    def __init__(self, db_session: AsyncSession, storage: ImageStorage, email_service: EmailService):
        self.db = db_session
        self.storage = storage
        self.email_service = email_service
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def add_property(
        self,
        property_data: PropertyCreate,
        files: Sequence[UploadFile],
        submitter: User
    ) -> Property:
        """
        Create a listing of the requested category with its uploaded images.
        The first uploaded file becomes the main image.

        Raises:
            InvalidCategoryError: If the category is not sale, rent or student
            BadRequestError: If the assigned agent is invalid or an upload is rejected
        """
        model = model_for_category(property_data.category)
        if model is None:
            raise InvalidCategoryError(property_data.category)

        agent_id = await self._resolve_agent(property_data.agent_id)

        values: Dict[str, Any] = {
            "title": property_data.title,
            "description": property_data.description,
            "price": property_data.price,
            "city": property_data.location.city,
            "address": property_data.location.address,
            "latitude": property_data.location.latitude,
            "longitude": property_data.location.longitude,
            "property_type": property_data.type,
            "area": property_data.area,
            "bedrooms": property_data.bedrooms,
            "bathrooms": property_data.bathrooms,
            "owner_id": submitter.id,
            "agent_id": agent_id,
        }

        if property_data.contact_info:
            for key, column in CONTACT_COLUMNS.items():
                values[column] = getattr(property_data.contact_info, key)

        for name in model.category_field_names:
            values[name] = getattr(property_data, name)

        if submitter.is_privileged:
            values.update(
                status=PropertyStatus.AVAILABLE,
                is_approved=True,
                is_active=True,
                approved_by_id=submitter.id,
                approved_at=utcnow()
            )
        else:
            values.update(status=PropertyStatus.PENDING, is_approved=False, is_active=False)

        stored = await self.storage.upload_many(files)

        try:
            property_obj = model(**values)
            property_obj.images = normalize_images(_new_images(stored))
            await self.property_repo.save(property_obj)
        except Exception as e:
            await self.storage.delete_many(image.external_id for image in stored)
            logger.error(f"Failed to create property for user {submitter.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

        logger.info(
            f"Property created by {submitter.email}: {property_obj.title} "
            f"(ID: {property_obj.id}, status: {property_obj.status.value})"
        )
        return await self.property_repo.get_property_with_details(property_obj.id)

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        files: Sequence[UploadFile],
        caller: User
    ) -> Property:
        """
        Apply an edit from someone allowed to manage the listing.

        Images named in ``images_to_delete`` are purged first. New uploads are
        appended, or, when a managed ``images`` list is sent, placed before the
        referenced existing images and everything unreferenced is dropped.

        Raises:
            PropertyNotFoundError: If the property does not exist
            ForbiddenError: If the caller may not manage the listing
            ConcurrentModificationError: If the listing changed concurrently
        """
        property_obj = await self._get_manageable(property_id, caller, "update")

        updates = property_data.model_dump(exclude_unset=True, exclude={"images", "images_to_delete"})
        if "agent_id" in updates:
            updates["agent_id"] = await self._resolve_agent(updates["agent_id"])

        current = {image.external_id: image for image in property_obj.images}

        to_purge = [external_id for external_id in dict.fromkeys(property_data.images_to_delete) if external_id in current]
        if to_purge:
            await self.storage.delete_many(to_purge)
            for external_id in to_purge:
                current.pop(external_id)

        stored = await self.storage.upload_many(files)
        uploaded = _new_images(stored)

        if property_data.images is not None:
            kept = []
            for reference in property_data.images:
                image = current.pop(reference.external_id, None)
                if image is None:
                    logger.debug(f"Ignoring unknown image {reference.external_id} for property {property_id}")
                    continue
                image.is_main = reference.is_main
                kept.append(image)
            dropped = list(current)
            images = uploaded + kept
        else:
            dropped = []
            images = list(current.values()) + uploaded

        try:
            self._apply_updates(property_obj, updates)
            property_obj.images = normalize_images(images)
            await self.property_repo.save(property_obj)
        except StaleDataError:
            await self.storage.delete_many(image.external_id for image in stored)
            raise ConcurrentModificationError()
        except APIException:
            await self.storage.delete_many(image.external_id for image in stored)
            raise
        except Exception as e:
            await self.storage.delete_many(image.external_id for image in stored)
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

        if dropped:
            await self.storage.delete_many(dropped)

        logger.info(f"Property {property_id} updated by {caller.email}")
        return await self.property_repo.get_property_with_details(property_id)

    def _apply_updates(self, property_obj: Property, updates: Dict[str, Any]) -> None:
        location = updates.pop("location", None) or {}
        for key, value in location.items():
            column = LOCATION_COLUMNS[key]
            if column == "city" and value is None:
                continue
            setattr(property_obj, column, value)

        contact = updates.pop("contact_info", None) or {}
        for key, value in contact.items():
            setattr(property_obj, CONTACT_COLUMNS[key], value)

        if "type" in updates:
            updates["property_type"] = updates.pop("type")

        own_fields = set(type(property_obj).category_field_names)

        for field, value in updates.items():
            if field in CATEGORY_FIELDS and field not in own_fields:
                continue
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(property_obj, field, value)

    async def delete_property(self, property_id: uuid.UUID, caller: User) -> None:
        """
        Delete a listing and its stored images.

        Raises:
            PropertyNotFoundError: If the property does not exist
            ForbiddenError: If the caller may not manage the listing
        """
        property_obj = await self._get_manageable(property_id, caller, "delete")
        await self._remove(property_obj)
        logger.info(f"Property {property_id} deleted by {caller.email}")

    async def approve_property(
        self,
        property_id: uuid.UUID,
        decision: ApproveRequest,
        admin: User
    ) -> Property:
        """
        Publish a listing and notify its contact. A failed notice is only logged.

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        property_obj.status = decision.status
        property_obj.is_active = decision.is_active
        property_obj.is_approved = decision.is_approved
        property_obj.approved_by_id = admin.id
        property_obj.approved_at = utcnow()

        try:
            await self.property_repo.save(property_obj)
        except StaleDataError:
            raise ConcurrentModificationError()

        logger.info(f"Property {property_id} approved by {admin.email}")
        property_obj = await self.property_repo.get_property_with_details(property_id)

        await self._notify(
            property_obj,
            APPROVAL_SUBJECT,
            approval_email(property_obj.contact_name, property_obj.title)
        )
        return property_obj

    async def deny_property(self, property_id: uuid.UUID, reason: Optional[str], admin: User) -> None:
        """
        Reject a listing: the contact is told why, then the listing and its
        images are removed whether or not the notice went out.

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        await self._notify(
            property_obj,
            DENIAL_SUBJECT,
            denial_email(property_obj.contact_name, property_obj.title, reason or DEFAULT_DENIAL_REASON)
        )

        await self._remove(property_obj)
        logger.info(f"Property {property_id} denied and deleted by {admin.email}")

    async def _notify(self, property_obj: Property, subject: str, html: str) -> None:
        recipient = property_obj.notification_email
        if not recipient:
            logger.warning(f"No contact address for property {property_obj.id}; notice not sent")
            return

        try:
            sent = await self.email_service.send(recipient, subject, html)
        except Exception as e:
            logger.error(f"Notice for property {property_obj.id} failed: {e}")
            return

        if not sent:
            logger.warning(f"Notice for property {property_obj.id} was not delivered to {recipient}")

    async def _remove(self, property_obj: Property) -> None:
        await self.storage.delete_many(image.external_id for image in property_obj.images)
        await self.property_repo.delete(property_obj)

    async def _get_manageable(self, property_id: uuid.UUID, caller: User, action: str) -> Property:
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        if not caller.can_manage_property(property_obj):
            raise ForbiddenError(f"User is not authorized to {action} this property")

        return property_obj

    async def _resolve_agent(self, agent_id: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
        if agent_id is None:
            return None

        agent = await self.user_repo.get_privileged(agent_id)
        if not agent:
            raise BadRequestError("Assigned agent must be an existing agent or admin account")
        return agent.id
