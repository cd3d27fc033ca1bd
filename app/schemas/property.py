"""
Pydantic schemas for property requests.
Handles listing creation, updates, image references and moderation bodies.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Literal
from decimal import Decimal
from uuid import UUID
from app.models.property import PropertyStatus


class LocationInput(BaseModel):
    """Listing location."""

    city: str = Field(..., min_length=1, max_length=100, examples=["Cairo"])
    address: Optional[str] = Field(None, max_length=255, examples=["15 Tahrir St"])
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)

    @field_validator("city")
    @classmethod
    def strip_city(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("City cannot be empty")
        return v.strip()


class LocationUpdate(BaseModel):
    """Partial location; omitted keys keep their stored value."""

    city: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)


class ContactInfoInput(BaseModel):
    """Contact details shown on the listing."""

    name: Optional[str] = Field(None, max_length=100, examples=["Ahmed Ali"])
    email: Optional[EmailStr] = Field(None, examples=["ahmed@example.com"])
    phone: Optional[str] = Field(None, max_length=30, examples=["01012345678"])


class CategoryFields(BaseModel):
    """Category-specific attributes. Only those of the listing's category are stored."""

    # sale
    payment_method: Optional[Literal["cash", "installments"]] = None
    is_negotiable: Optional[bool] = None

    # rent
    rental_period: Optional[Literal["daily", "monthly", "yearly"]] = None
    deposit: Optional[Decimal] = Field(None, ge=0)
    is_furnished: Optional[bool] = None

    # student
    gender_preference: Optional[Literal["male", "female", "any"]] = None
    beds_available: Optional[int] = Field(None, ge=0)
    nearby_university: Optional[str] = Field(None, max_length=255)


class PropertyCreate(CategoryFields):
    """Schema for submitting a new listing."""

    category: str = Field(..., max_length=20, description="sale, rent or student", examples=["rent"])

    title: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="Property listing title",
        examples=["شقة مفروشة في المعادي"]
    )

    description: Optional[str] = Field(
        None,
        max_length=5000,
        description="Detailed property description"
    )

    price: Decimal = Field(..., gt=0, description="Asking price", examples=[5000])

    location: LocationInput

    type: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Localized property type",
        examples=["شقة"]
    )

    area: Optional[int] = Field(None, gt=0, description="Area in square meters", examples=[120])
    bedrooms: Optional[int] = Field(None, ge=0, le=50, examples=[3])
    bathrooms: Optional[int] = Field(None, ge=0, le=50, examples=[2])

    contact_info: Optional[ContactInfoInput] = None

    agent_id: Optional[UUID] = Field(None, description="Agent handling the listing")

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("title", "type")
    @classmethod
    def strip_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()


class ImageReference(BaseModel):
    """An already-stored image kept in a managed image list."""

    external_id: str = Field(..., min_length=1)
    is_main: bool = False


class PropertyUpdate(CategoryFields):
    """
    Schema for updating a listing. Every field is optional.
    ``images`` is the managed list of existing images to keep;
    ``images_to_delete`` names stored images to purge.
    """

    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0)
    location: Optional[LocationUpdate] = None
    type: Optional[str] = Field(None, min_length=1, max_length=50)
    area: Optional[int] = Field(None, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    contact_info: Optional[ContactInfoInput] = None
    agent_id: Optional[UUID] = None

    images: Optional[List[ImageReference]] = None
    images_to_delete: List[str] = Field(default_factory=list)


class ApproveRequest(BaseModel):
    """Optional overrides applied when an admin approves a listing."""

    status: PropertyStatus = PropertyStatus.AVAILABLE
    is_active: bool = True
    is_approved: bool = True


class DenyRequest(BaseModel):
    """Reason included in the rejection notice."""

    reason: Optional[str] = Field(None, max_length=1000)
