"""
Authentication service for registration, login and token management.
Handles JWT token generation, validation and user authentication flows.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.user import UserRepository
from app.models.user import User, UserRole
from app.schemas.user import UserCreate
from app.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token
)
from app.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ValidationError,
    BadRequestError,
    DuplicateResourceError
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing accounts and tokens.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: UserCreate) -> User:
        """
        Register a new account. Public registration always creates the user role.

        Raises:
            DuplicateResourceError: If the email is already registered
            BadRequestError: If the account data is rejected
        """
        try:
            existing = await self.user_repo.get_by_email(user_data.email)
            if existing:
                raise DuplicateResourceError("User", user_data.email)

            create_data = user_data.model_dump()
            create_data["role"] = UserRole.USER
            user = await self.user_repo.create_user(create_data)

            logger.info(f"User registered: {user.email} (ID: {user.id})")
            return user

        except DuplicateResourceError:
            raise
        except ValueError as e:
            raise BadRequestError(str(e))
        except Exception as e:
            logger.error(f"Failed to register user: {e}")
            raise BadRequestError(f"Failed to register user: {str(e)}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
            ValidationError: If input validation fails
        """
        try:
            if not email or not email.strip():
                raise ValidationError("Email is required")

            if not password or not password.strip():
                raise ValidationError("Password is required")

            user = await self.user_repo.get_by_email(email)

            if not user or not user.verify_password(password):
                logger.warning(f"Failed authentication attempt for email: {email}")
                raise InvalidCredentialsError()

            if not user.is_active:
                raise InactiveUserError()

            logger.info(f"User authenticated successfully: {user.email}")
            return user

        except (ValidationError, InvalidCredentialsError, InactiveUserError):
            raise
        except Exception as e:
            logger.error(f"Authentication error for {email}: {e}")
            raise InvalidCredentialsError()

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Create access and refresh tokens for user."""
        access_token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role
        )
        refresh_token = create_refresh_token(
            user_id=user.id,
            email=user.email
        )
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        user = await self._user_from_token(refresh_token, "refresh")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenError: If token is invalid or the user no longer exists
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        return await self._user_from_token(token, "access")

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            token_payload = verify_token(token, token_type=token_type)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(str(e))

        try:
            user = await self.get_user_by_id(uuid.UUID(token_payload.user_id))
        except (NotFoundError, ValueError):
            raise InvalidTokenError("Token subject does not exist")

        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Get user by ID.

        Raises:
            NotFoundError: If user not found
        """
        try:
            user = await self.user_repo.get_by_id(user_id)

            if not user:
                raise NotFoundError("User", str(user_id))

            return user

        except NotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to get user by ID {user_id}: {e}")
            raise BadRequestError(f"Failed to retrieve user: {str(e)}")
