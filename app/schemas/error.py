"""
Error response schemas for API documentation.
Mirrors the envelope rendered by ErrorHandlerService.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class ErrorDetail(BaseModel):
    """Schema for individual field error detail."""

    field: Optional[str] = Field(None, description="Location of the offending value", examples=["body -> price"])
    message: str = Field(..., description="Human-readable error message", examples=["Input should be greater than 0"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["greater_than"])


class ErrorInfo(BaseModel):
    """Machine-readable part of an error response."""

    code: str = Field(..., description="Error code identifier", examples=["NOT_FOUND"])
    timestamp: str = Field(..., description="UTC time the error was produced", examples=["2024-01-01T00:00:00Z"])
    request_id: Optional[str] = Field(None, description="Request identifier for log correlation", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Per-field validation errors")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    success: bool = Field(False, description="Always false for errors")
    message: str = Field(..., description="Human-readable error message", examples=["Property not found"])
    error: ErrorInfo
