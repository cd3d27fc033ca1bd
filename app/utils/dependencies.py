"""
FastAPI dependency injection utilities for authentication, services and
the collaborators created in the application lifespan.
"""

from typing import Any
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.models.user import User
from app.services.auth import AuthService
from app.services.chat import ChatService
from app.services.email import EmailService
from app.services.favorites import FavoritesService
from app.services.moderation import ModerationService
from app.services.property import PropertyService
from app.services.storage import ImageStorage
from app.services.testimonial import TestimonialService
from app.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    InsufficientPermissionsError,
    ServiceUnavailableError
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def _app_state(request: Request, name: str, description: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ServiceUnavailableError(f"{description} is not configured")
    return value


def get_llm_client(request: Request) -> AsyncOpenAI:
    """Language-model client built at startup; 503 when no API key was configured."""
    return _app_state(request, "llm_client", "The chat assistant")


def get_email_service(request: Request) -> EmailService:
    return _app_state(request, "email_service", "Email delivery")


def get_image_storage(request: Request) -> ImageStorage:
    return _app_state(request, "image_storage", "Image storage")


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_moderation_service(
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    email_service: EmailService = Depends(get_email_service)
) -> ModerationService:
    return ModerationService(db, storage, email_service)


async def get_favorites_service(db: AsyncSession = Depends(get_db)) -> FavoritesService:
    return FavoritesService(db)


async def get_testimonial_service(db: AsyncSession = Depends(get_db)) -> TestimonialService:
    return TestimonialService(db)


async def get_chat_service(
    db: AsyncSession = Depends(get_db),
    llm_client: AsyncOpenAI = Depends(get_llm_client)
) -> ChatService:
    return ChatService(db, llm_client)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, InactiveUserError):
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Raises:
        InactiveUserError: If user account is inactive
    """
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if not current_user.is_admin:
        raise InsufficientPermissionsError("access admin resources")

    return current_user
