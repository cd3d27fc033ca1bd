"""
Authentication API endpoints for registration, login, token refresh and
the current user's profile.
"""

from fastapi import APIRouter, Depends, status
from app.models.user import User
from app.services.auth import AuthService
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse
)
from app.schemas.common import APIResponse, envelope
from app.schemas.user import UserCreate, UserResponse
from app.services.error_handler import error_responses
from app.utils.dependencies import get_auth_service, get_current_active_user
from app.config import settings


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register account",
    description="Create a regular user account",
    responses=error_responses(400, 409)
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> APIResponse:
    user = await auth_service.register(user_data)
    return envelope(
        UserResponse.model_validate(user).model_dump(mode="json"),
        "User registered successfully"
    )


@router.post(
    "/login",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=error_responses(400, 401, 403)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> APIResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )

    response = LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )
    return envelope(response.model_dump(mode="json"), "Login successful")


@router.post(
    "/refresh",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Refresh access token",
    description="Exchange a refresh token for a new access token",
    responses=error_responses(401, 403)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> APIResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)

    response = AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )
    return envelope(response.model_dump(mode="json"), "Token refreshed")


@router.get(
    "/me",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Current user",
    description="Profile of the authenticated user",
    responses=error_responses(401, 403)
)
async def get_me(current_user: User = Depends(get_current_active_user)) -> APIResponse:
    return envelope(UserResponse.model_validate(current_user).model_dump(mode="json"))
