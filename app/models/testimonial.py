"""
Testimonial model for user reviews of listings and agencies.
"""

from sqlalchemy import String, Text, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base
import enum
import uuid
from typing import Optional


class TestimonialType(str, enum.Enum):
    """What the testimonial is about."""
    PROPERTY = "property"
    AGENCY = "agency"


class TestimonialStatus(str, enum.Enum):
    """Moderation status of a testimonial."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Testimonial(Base):
    """
    A review left about a property or an agency.
    Only the reference matching the type is stored.
    """

    __tablename__ = "testimonials"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    type: Mapped[TestimonialType] = mapped_column(SQLEnum(TestimonialType), nullable=False, index=True)

    status: Mapped[TestimonialStatus] = mapped_column(
        SQLEnum(TestimonialStatus),
        nullable=False,
        default=TestimonialStatus.PENDING,
        index=True
    )

    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    agency_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("agencies.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    def __repr__(self) -> str:
        return f"<Testimonial(id={self.id}, type={self.type}, status={self.status})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "text": self.text,
            "image": self.image,
            "role": self.role,
            "type": self.type.value,
            "status": self.status.value,
            "property_id": str(self.property_id) if self.property_id else None,
            "agency_id": str(self.agency_id) if self.agency_id else None,
            "created_at": self.created_at.isoformat(),
        }
