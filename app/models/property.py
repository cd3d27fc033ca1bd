"""
Property model for sale, rent and student listings.
A single table holds the common shape; each category adds its own optional columns.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, DateTime, Enum as SQLEnum, Index, ForeignKey, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.image import PropertyImage
    from app.models.wishlist import WishlistItem


class PropertyCategory(str, enum.Enum):
    """Listing category; selects the stored sub-shape."""
    SALE = "sale"
    RENT = "rent"
    STUDENT = "student"


class PropertyStatus(str, enum.Enum):
    """Lifecycle status of a listing."""
    PENDING = "pending"
    AVAILABLE = "available"
    RENTED = "rented"
    SOLD = "sold"
    INACTIVE = "inactive"


# Arabic display text for statuses; property types are stored already localized
STATUS_LABELS = {
    PropertyStatus.AVAILABLE.value: "متاح",
    PropertyStatus.RENTED.value: "مؤجر",
    PropertyStatus.SOLD.value: "مباع",
    PropertyStatus.PENDING.value: "قيد المراجعة",
    PropertyStatus.INACTIVE.value: "غير نشط",
}


def translate_status(status: str) -> str:
    """Return the display label for a status, or the value itself when unknown."""
    return STATUS_LABELS.get(status, status)


class Property(Base):
    """
    Property listing shared by every category.
    Publicly listable only when both approved and active.
    """

    __tablename__ = "properties"

    # Attribute names of the category-specific columns, set on each subclass
    category_field_names: Tuple[str, ...] = ()

    category: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="Listing category - sale, rent or student"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Detailed property description"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True,
        comment="Asking price"
    )

    # Location
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=10, scale=8), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=11, scale=8), nullable=True)

    property_type: Mapped[str] = mapped_column(
        "type",
        String(50),
        nullable=False,
        index=True,
        comment="Localized property type, e.g. شقة or فيلا"
    )

    area: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Area in square meters")
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Contact details shown to buyers and used for moderation notices
    contact_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # Moderation state
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.PENDING,
        index=True
    )
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id], lazy="selectin")
    agent: Mapped[Optional["User"]] = relationship("User", foreign_keys=[agent_id], lazy="selectin")
    approved_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[approved_by_id], lazy="selectin")

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.display_order.asc()"
    )

    favorites: Mapped[List["WishlistItem"]] = relationship(
        "WishlistItem",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    __mapper_args__ = {
        "polymorphic_on": "category",
        "with_polymorphic": "*",
        "version_id_col": version,
    }

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, category={self.category}, title={self.title[:30]}, price={self.price})>"

    @property
    def is_public(self) -> bool:
        return self.is_approved and self.is_active

    @property
    def main_image(self) -> Optional["PropertyImage"]:
        for image in self.images:
            if image.is_main:
                return image
        return self.images[0] if self.images else None

    @property
    def favorited_by(self) -> List[uuid.UUID]:
        return [item.user_id for item in self.favorites]

    @property
    def notification_email(self) -> Optional[str]:
        """Address used for moderation notices: the listing contact, else the owner."""
        if self.contact_email:
            return self.contact_email
        return self.owner.email if self.owner else None

    def category_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.category_field_names}

    def to_dict(self, fields: Optional[Iterable[str]] = None) -> dict:
        """
        Convert property to its API representation.

        Args:
            fields: Optional projection; only these top-level keys (plus id) are kept

        Returns:
            Dictionary representation of the property
        """
        result = {
            "id": str(self.id),
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "price": float(self.price),
            "location": {
                "city": self.city,
                "address": self.address,
                "latitude": float(self.latitude) if self.latitude is not None else None,
                "longitude": float(self.longitude) if self.longitude is not None else None,
            },
            "type": self.property_type,
            "area": self.area,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "images": [image.to_dict() for image in self.images],
            "contact_info": {
                "name": self.contact_name,
                "email": self.contact_email,
                "phone": self.contact_phone,
            },
            "owner": self.owner.to_summary() if self.owner else None,
            "agent": self.agent.to_summary() if self.agent else None,
            "status": self.status.value,
            "is_approved": self.is_approved,
            "is_active": self.is_active,
            "approved_by": self.approved_by.to_summary() if self.approved_by else None,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "views": self.views,
            "favorited_by": [str(user_id) for user_id in self.favorited_by],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        result.update(self.category_fields())

        if fields:
            keep = set(fields) | {"id"}
            result = {key: value for key, value in result.items() if key in keep}

        return result


class SaleProperty(Property):
    """Listing offered for sale."""

    category_field_names = ("payment_method", "is_negotiable")

    payment_method: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="cash or installments"
    )
    is_negotiable: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    __mapper_args__ = {"polymorphic_identity": PropertyCategory.SALE.value}


class RentProperty(Property):
    """Listing offered for rent."""

    category_field_names = ("rental_period", "deposit", "is_furnished")

    rental_period: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="daily, monthly or yearly"
    )
    deposit: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=12, scale=2), nullable=True)
    is_furnished: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    __mapper_args__ = {"polymorphic_identity": PropertyCategory.RENT.value}

    def category_fields(self) -> Dict[str, Any]:
        fields = super().category_fields()
        if fields["deposit"] is not None:
            fields["deposit"] = float(fields["deposit"])
        return fields


class StudentProperty(Property):
    """Shared student housing."""

    category_field_names = ("gender_preference", "beds_available", "nearby_university")

    gender_preference: Mapped[Optional[str]] = mapped_column(
        String(10), nullable=True, comment="male, female or any"
    )
    beds_available: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    nearby_university: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __mapper_args__ = {"polymorphic_identity": PropertyCategory.STUDENT.value}


PROPERTY_MODELS = {
    PropertyCategory.SALE.value: SaleProperty,
    PropertyCategory.RENT.value: RentProperty,
    PropertyCategory.STUDENT.value: StudentProperty,
}


def model_for_category(category: Optional[str]) -> Optional[type]:
    """Map a category name to its mapped class, or None when unknown."""
    if not category:
        return None
    return PROPERTY_MODELS.get(category.strip().lower())


# Composite index for the public listing predicate
public_listing_index = Index(
    'idx_properties_public',
    Property.is_approved,
    Property.is_active,
    Property.created_at.desc()
)

# Composite index for the moderation queue
moderation_queue_index = Index(
    'idx_properties_status_category',
    Property.status,
    Property.category
)
