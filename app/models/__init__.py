"""
Database models for the listings API.
Includes users, polymorphic property listings, images, wishlists, testimonials and agencies.
"""

from app.models.user import User, UserRole
from app.models.property import (
    Property,
    SaleProperty,
    RentProperty,
    StudentProperty,
    PropertyCategory,
    PropertyStatus,
)
from app.models.image import PropertyImage
from app.models.wishlist import WishlistItem
from app.models.agency import Agency
from app.models.testimonial import Testimonial, TestimonialType, TestimonialStatus

__all__ = [
    "User",
    "UserRole",
    "Property",
    "SaleProperty",
    "RentProperty",
    "StudentProperty",
    "PropertyCategory",
    "PropertyStatus",
    "PropertyImage",
    "WishlistItem",
    "Agency",
    "Testimonial",
    "TestimonialType",
    "TestimonialStatus",
]
