"""
Pydantic schemas for user requests and responses.
Handles registration and user serialization with email validation.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID
from app.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema with common fields."""

    user_name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Display name",
        examples=["Ahmed Ali"]
    )

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["ahmed@example.com"]
    )

    phone_number: Optional[str] = Field(
        None,
        max_length=30,
        description="Contact phone number",
        examples=["01012345678"]
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("user_name")
    @classmethod
    def validate_user_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("User name cannot be empty")
        return v.strip()


class UserCreate(UserBase):
    """Schema for registering a new account."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters, letters and digits)",
        examples=["securepassword123"]
    )

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password strength."""
        if not any(c.isalpha() for c in v):
            raise ValueError("Password must contain at least one letter")

        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one number")

        return v


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="User's unique identifier")
    user_name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="User's email address")
    phone_number: Optional[str] = Field(None, description="Contact phone number")
    role: UserRole = Field(..., description="User's role", examples=["user"])
    is_active: bool = Field(..., description="Whether the user account is active")
    created_at: datetime = Field(..., description="Account creation timestamp")
