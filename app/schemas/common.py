"""
Response envelope shared by every successful endpoint.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class PaginationMeta(BaseModel):
    """Paging metadata for list endpoints."""

    currentPage: int = Field(..., examples=[1])
    totalPages: int = Field(..., examples=[3])
    totalDocs: int = Field(..., examples=[25])
    itemsPerPage: int = Field(..., examples=[10])
    hasNext: bool = Field(..., examples=[True])
    hasPrev: bool = Field(..., examples=[False])


class APIResponse(BaseModel):
    """Success envelope. ``count`` and ``pagination`` appear only on list endpoints."""

    success: bool = Field(True, description="Always true for successful responses")
    data: Any = Field(None, description="Endpoint payload")
    message: Optional[str] = Field(None, description="Human-readable outcome")
    count: Optional[int] = Field(None, description="Number of items in data")
    pagination: Optional[PaginationMeta] = Field(None, description="Paging metadata")


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    *,
    count: Optional[int] = None,
    pagination: Optional[Dict[str, Any]] = None
) -> APIResponse:
    """Build a success envelope, leaving optional keys unset when not given."""
    payload: Dict[str, Any] = {"success": True, "data": data, "message": message}
    if count is not None:
        payload["count"] = count
    if pagination is not None:
        payload["pagination"] = pagination
    return APIResponse(**payload)
