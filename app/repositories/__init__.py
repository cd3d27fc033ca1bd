"""
Repository layer for data access operations.
"""

from app.repositories.base import BaseRepository
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.repositories.wishlist import WishlistRepository
from app.repositories.testimonial import TestimonialRepository
from app.repositories.agency import AgencyRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "UserRepository",
    "WishlistRepository",
    "TestimonialRepository",
    "AgencyRepository",
]
