"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    LoginResponse
)

# User schemas
from .user import (
    UserBase,
    UserCreate,
    UserResponse
)

# Property schemas
from .property import (
    LocationInput,
    LocationUpdate,
    ContactInfoInput,
    PropertyCreate,
    PropertyUpdate,
    ImageReference,
    ApproveRequest,
    DenyRequest
)

from .testimonial import TestimonialCreate, TestimonialStatusUpdate
from .chat import ChatQuestion, ChatAnswer
from .common import APIResponse, PaginationMeta, envelope
from .error import ErrorDetail, ErrorInfo, ErrorResponse

__all__ = [
    # Authentication
    "LoginRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "LoginResponse",

    # User
    "UserBase",
    "UserCreate",
    "UserResponse",

    # Property
    "LocationInput",
    "LocationUpdate",
    "ContactInfoInput",
    "PropertyCreate",
    "PropertyUpdate",
    "ImageReference",
    "ApproveRequest",
    "DenyRequest",

    # Testimonial
    "TestimonialCreate",
    "TestimonialStatusUpdate",

    # Chat
    "ChatQuestion",
    "ChatAnswer",

    # Envelopes
    "APIResponse",
    "PaginationMeta",
    "envelope",
    "ErrorDetail",
    "ErrorInfo",
    "ErrorResponse",
]
