"""
PropertyImage model for listing media.
Stores the image storage identifier, the public URL and the main-image flag.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.property import Property


class PropertyImage(Base):
    """
    An image attached to a property listing.
    The ordered list of images belongs to its property; exactly one image is main.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    external_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Identifier of the file in the image storage provider"
    )

    url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Public URL of the stored image"
    )

    is_main: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the main image for the property"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Position in the property's image list"
    )

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, external_id={self.external_id}, is_main={self.is_main})>"

    def to_dict(self) -> dict:
        return {
            "external_id": self.external_id,
            "url": self.url,
            "is_main": self.is_main,
        }


property_images_order_index = Index(
    'idx_property_images_property_order',
    PropertyImage.property_id,
    PropertyImage.display_order.asc()
)
