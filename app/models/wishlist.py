"""
Wishlist membership linking users and the properties they saved.
One row is both the user's wishlist entry and the property's favorited-by membership.
"""

from sqlalchemy import ForeignKey, DateTime, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base, utcnow
from datetime import datetime
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.property import Property


class WishlistItem(Base):
    """A property saved by a user."""

    __tablename__ = "wishlist_items"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_wishlist_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="wishlist")

    property_rel: Mapped["Property"] = relationship("Property", back_populates="favorites")

    def to_dict(self) -> dict:
        return {
            "property_id": str(self.property_id),
            "added_at": self.added_at.isoformat(),
        }
