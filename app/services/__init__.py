"""
Service layer for business logic implementation.
Contains services for authentication, listings, moderation, favorites,
testimonials, the chat assistant and error handling.
"""

from .auth import AuthService
from .property import PropertyService
from .moderation import ModerationService
from .favorites import FavoritesService
from .testimonial import TestimonialService
from .chat import ChatService
from .email import EmailService
from .storage import ImageStorage
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "ModerationService",
    "FavoritesService",
    "TestimonialService",
    "ChatService",
    "EmailService",
    "ImageStorage",
    "ErrorHandlerService"
]
