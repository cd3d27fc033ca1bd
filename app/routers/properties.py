"""
Property API endpoints: public listing and search, details, suggestions,
owner submissions and edits, admin moderation, and favorites.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from uuid import UUID

from app.models.user import User
from app.schemas.common import APIResponse, envelope
from app.schemas.property import PropertyCreate, PropertyUpdate, ApproveRequest, DenyRequest
from app.services.error_handler import error_responses
from app.services.favorites import FavoritesService
from app.services.moderation import ModerationService
from app.services.property import PropertyService, NO_RESULTS_MESSAGE
from app.utils.dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_favorites_service,
    get_moderation_service,
    get_property_service
)
from app.utils.request_parsing import parse_request_body


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="List properties",
    description=(
        "Approved and active listings. Filter with field equality or bracket ranges "
        "(`price[gte]=1000`), sort with `sort=-price,created_at`, select fields with "
        "`fields=title,price`, and page with `page` and `limit`."
    ),
    responses=error_responses(400)
)
async def list_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    page = await property_service.get_all_properties(request.query_params)

    message = "Properties fetched successfully" if page.total else NO_RESULTS_MESSAGE
    return envelope(page.serialize(), message, pagination=page.pagination)


@router.get(
    "/search",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Search properties",
    description="Keyword search (`keyword` or `search`) combined with the listing filters",
    responses=error_responses(400)
)
async def search_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    page = await property_service.search_properties(request.query_params)

    if not page.total:
        return envelope([], "No properties found", count=0, pagination=page.pagination)

    data = page.serialize()
    return envelope(
        data,
        "Properties fetched successfully based on search criteria",
        count=len(data),
        pagination=page.pagination
    )


@router.get(
    "/most-viewed",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Most viewed properties",
    description="Top listings by views with Arabic status labels and slider image URLs"
)
async def most_viewed_properties(
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    items = await property_service.get_most_viewed_properties()

    if not items:
        return envelope([], "No active and approved properties found")

    return envelope(
        items,
        "Most viewed active and approved properties fetched successfully",
        count=len(items)
    )


@router.get(
    "/pending",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Pending properties",
    description="Moderation queue, optionally for one category. Admin only.",
    responses=error_responses(400, 401, 403)
)
async def pending_properties(
    category: Optional[str] = Query(None, description="sale, rent or student"),
    admin: User = Depends(get_current_admin_user),
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    properties = await property_service.get_pending_properties(category)
    return envelope(
        [property_obj.to_dict() for property_obj in properties],
        "Pending properties fetched successfully",
        count=len(properties)
    )


@router.get(
    "/mine",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="My properties",
    description="Every listing owned by the caller, whatever its status",
    responses=error_responses(401)
)
async def my_properties(
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    properties = await property_service.get_user_properties(current_user)
    return envelope(
        [property_obj.to_dict() for property_obj in properties],
        "User properties fetched successfully",
        count=len(properties)
    )


@router.get(
    "/favorites",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="My wishlist",
    description="Saved listings, most recently added first",
    responses=error_responses(401)
)
async def my_wishlist(
    current_user: User = Depends(get_current_active_user),
    favorites_service: FavoritesService = Depends(get_favorites_service)
) -> APIResponse:
    items = await favorites_service.get_wishlist(current_user)
    return envelope(items, "Wishlist fetched successfully", count=len(items))


@router.post(
    "",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit property",
    description=(
        "Create a listing from JSON or multipart form data (`location[city]`, "
        "image files under `images`). Listings from regular users wait for review."
    ),
    responses=error_responses(400, 401)
)
async def create_property(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
) -> APIResponse:
    property_data, files = await parse_request_body(request, PropertyCreate)
    property_obj = await moderation_service.add_property(property_data, files, current_user)
    return envelope(property_obj.to_dict(), "Property created successfully.")


@router.get(
    "/{property_id}",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Property details",
    description="Listing with owner, agent and approver; counts a view",
    responses=error_responses(400, 404)
)
async def get_property(
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    property_obj = await property_service.get_property_details(property_id)
    return envelope(property_obj.to_dict(), "Property details fetched successfully")


@router.get(
    "/{property_id}/similar",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Similar properties",
    description="Up to four public listings ranked by shared city, type, price band, area and bedrooms",
    responses=error_responses(400, 404)
)
async def similar_properties(
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service)
) -> APIResponse:
    properties = await property_service.get_similar_properties(property_id)
    return envelope(
        [property_obj.to_dict() for property_obj in properties],
        "Similar properties fetched successfully",
        count=len(properties)
    )


@router.put(
    "/{property_id}",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Update property",
    description=(
        "Edit a listing as its owner, its agent or an admin. `images_to_delete` purges "
        "stored images; a JSON `images` list manages which existing images remain."
    ),
    responses=error_responses(400, 401, 403, 404, 409)
)
async def update_property(
    property_id: UUID,
    request: Request,
    current_user: User = Depends(get_current_active_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
) -> APIResponse:
    property_data, files = await parse_request_body(request, PropertyUpdate)
    property_obj = await moderation_service.update_property(property_id, property_data, files, current_user)
    return envelope(property_obj.to_dict(), "Property updated successfully")


@router.delete(
    "/{property_id}",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Delete property",
    responses=error_responses(400, 401, 403, 404)
)
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
) -> APIResponse:
    await moderation_service.delete_property(property_id, current_user)
    return envelope(None, "Property deleted successfully")


@router.patch(
    "/{property_id}/approve",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Approve property",
    description="Publish a listing and email its contact. Admin only.",
    responses=error_responses(400, 401, 403, 404, 409)
)
async def approve_property(
    property_id: UUID,
    request: Request,
    admin: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
) -> APIResponse:
    decision, _ = await parse_request_body(request, ApproveRequest)
    property_obj = await moderation_service.approve_property(property_id, decision, admin)
    return envelope(property_obj.to_dict(), "Property approved successfully")


@router.delete(
    "/{property_id}/deny",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Deny property",
    description="Email the rejection reason to the contact, then delete the listing. Admin only.",
    responses=error_responses(400, 401, 403, 404)
)
async def deny_property(
    property_id: UUID,
    request: Request,
    reason: Optional[str] = Query(None, max_length=1000, description="Reason shown to the owner"),
    admin: User = Depends(get_current_admin_user),
    moderation_service: ModerationService = Depends(get_moderation_service)
) -> APIResponse:
    if reason is None:
        denial, _ = await parse_request_body(request, DenyRequest)
        reason = denial.reason

    await moderation_service.deny_property(property_id, reason, admin)
    return envelope(None, "Property denied and deleted successfully")


@router.post(
    "/{property_id}/favorite",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Add to favorites",
    responses=error_responses(400, 401, 404)
)
async def add_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    favorites_service: FavoritesService = Depends(get_favorites_service)
) -> APIResponse:
    await favorites_service.add_to_favorites(property_id, current_user)
    return envelope({"propertyId": str(property_id)}, "Property added to favorites successfully")


@router.delete(
    "/{property_id}/favorite",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Remove from favorites",
    responses=error_responses(400, 401, 404)
)
async def remove_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    favorites_service: FavoritesService = Depends(get_favorites_service)
) -> APIResponse:
    await favorites_service.remove_from_favorites(property_id, current_user)
    return envelope({"propertyId": str(property_id)}, "Property removed from favorites successfully")


@router.get(
    "/{property_id}/favorite",
    response_model=APIResponse,
    response_model_exclude_unset=True,
    summary="Favorite status",
    responses=error_responses(400, 401)
)
async def favorite_status(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    favorites_service: FavoritesService = Depends(get_favorites_service)
) -> APIResponse:
    is_favorite = await favorites_service.check_favorite_status(property_id, current_user)
    return envelope({"isFavorite": is_favorite})
