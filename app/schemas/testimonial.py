"""
Pydantic schemas for testimonial requests.
Required fields are checked by the service so the rejection message stays localized.
"""

from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from app.models.testimonial import TestimonialType


class TestimonialCreate(BaseModel):
    """Schema for submitting a testimonial."""

    name: Optional[str] = Field(None, max_length=100, examples=["Sara"])
    text: Optional[str] = Field(None, max_length=5000, examples=["Great experience"])
    image: Optional[str] = Field(None, max_length=500)
    role: Optional[str] = Field(None, max_length=100, examples=["Tenant"])
    type: Optional[TestimonialType] = Field(None, examples=["property"])
    property_id: Optional[UUID] = None
    agency_id: Optional[UUID] = None


class TestimonialStatusUpdate(BaseModel):
    """New moderation status; only approved or rejected are accepted."""

    status: Optional[str] = Field(None, examples=["approved"])
