"""
Property management API endpoints for the listing lifecycle, search, and favorites.
Public reads are open; every mutation requires the owner or an administrator.
"""

from fastapi import APIRouter, Body, Depends, status, Query
from typing import Optional, Literal
from decimal import Decimal
import math

from marketplace.config import settings
from marketplace.models.user import User
from marketplace.models.property import Property, PropertyType, ListingType, PropertyStatus
from marketplace.services.property import PropertyService
from marketplace.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    SoftDeleteRequest,
    DeletionResponse,
    PropertyResponse,
    PropertyListResponse,
    FavoriteResponse
)
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_property_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])

SortField = Literal["created_at", "updated_at", "price", "views_count", "title"]
SortOrder = Literal["asc", "desc"]


def _to_response(property_obj: Property) -> PropertyResponse:
    return PropertyResponse.model_validate(property_obj.to_dict(include_owner=True, include_images=True))


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires the seller or agent role.",
    responses=get_error_responses(400, 401, 403, 500)
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.

    The listing starts pending review, or as a draft when requested.

    Raises:
        ForbiddenError: If the caller is not a seller or agent
        ValidationError: If property data is invalid
    """
    property_obj = await property_service.create_property(property_data, current_user)
    return _to_response(property_obj)


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="Search properties",
    description="Paginated search over active listings with optional filters"
)
async def list_properties(
    # Search parameters
    search: Optional[str] = Query(None, description="Text matched against title, description, city and address"),
    city: Optional[str] = Query(None, description="City filter"),
    property_type: Optional[PropertyType] = Query(None),
    listing_type: Optional[ListingType] = Query(None),

    # Price filters
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price filter"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price filter"),

    # Size filters
    bedrooms: Optional[int] = Query(None, ge=0, le=100, description="Minimum number of bedrooms"),
    bathrooms: Optional[int] = Query(None, ge=0, le=100, description="Minimum number of bathrooms"),
    is_featured: Optional[bool] = Query(None),

    # Status filter (admin only)
    status_filter: Optional[PropertyStatus] = Query(None, alias="status", description="Status filter (admin only)"),

    # Pagination
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),

    # Sorting
    sort_by: SortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),

    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.search_properties(
        page=page,
        page_size=page_size,
        current_user=current_user,
        search=search,
        city=city,
        property_type=property_type,
        listing_type=listing_type,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        is_featured=is_featured,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order
    )

    total_pages = math.ceil(total / page_size) if total > 0 else 0

    return PropertyListResponse(
        properties=[_to_response(p) for p in properties],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property",
    description="Read one listing with owner and images; signed-in reads count a view",
    responses=get_error_responses(404)
)
async def get_property(
    property_id: str,
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    result = await property_service.get_property_detail(property_id, current_user)
    return PropertyResponse.model_validate(result)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description="Partial update; editing an active listing sends it back to pending review",
    responses=get_error_responses(400, 401, 403, 404)
)
@router.patch(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description="Partial update; editing an active listing sends it back to pending review",
    responses=get_error_responses(400, 401, 403, 404)
)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Update a listing owned by the caller.

    Raises:
        PropertyOwnershipError: If the caller does not own the listing
        PropertyStatusError: If the requested status change is not allowed
    """
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return _to_response(property_obj)


@router.delete(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Archive property",
    description="Archive a listing; active listings must be deactivated first",
    responses=get_error_responses(400, 401, 403, 404)
)
async def archive_property(
    property_id: str,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.archive_property(property_id, current_user)
    return _to_response(property_obj)


@router.patch(
    "/{property_id}/soft-delete",
    response_model=DeletionResponse,
    status_code=status.HTTP_200_OK,
    summary="Soft delete property",
    description="Mark a listing deleted; with permanent=true the listing is removed for good",
    responses=get_error_responses(400, 401, 403, 404)
)
async def soft_delete_property(
    property_id: str,
    request: Optional[SoftDeleteRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> DeletionResponse:
    request = request or SoftDeleteRequest()
    result = await property_service.soft_delete_property(
        property_id,
        current_user,
        reason=request.reason,
        permanent=request.permanent
    )
    return DeletionResponse.model_validate(result)


@router.delete(
    "/{property_id}/soft-delete",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Restore property",
    description="Clear the soft-delete marker; the status is left unchanged",
    responses=get_error_responses(400, 401, 403, 404)
)
async def restore_property(
    property_id: str,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.restore_property(property_id, current_user)
    return _to_response(property_obj)


@router.delete(
    "/{property_id}/permanent",
    response_model=DeletionResponse,
    status_code=status.HTTP_200_OK,
    summary="Permanently delete property",
    description="Delete the listing with its images, inquiries, analytics events and favorites",
    responses=get_error_responses(401, 403, 404, 500)
)
async def hard_delete_property(
    property_id: str,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> DeletionResponse:
    result = await property_service.hard_delete_property(property_id, current_user)
    return DeletionResponse.model_validate(result)


@router.post(
    "/{property_id}/favorite",
    response_model=FavoriteResponse,
    status_code=status.HTTP_200_OK,
    summary="Save property",
    responses=get_error_responses(401, 404)
)
async def add_favorite(
    property_id: str,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> FavoriteResponse:
    is_favorite = await property_service.add_favorite(property_id, current_user)
    return FavoriteResponse(property_id=property_id, is_favorite=is_favorite)


@router.delete(
    "/{property_id}/favorite",
    response_model=FavoriteResponse,
    status_code=status.HTTP_200_OK,
    summary="Remove saved property",
    responses=get_error_responses(401, 404)
)
async def remove_favorite(
    property_id: str,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> FavoriteResponse:
    is_favorite = await property_service.remove_favorite(property_id, current_user)
    return FavoriteResponse(property_id=property_id, is_favorite=is_favorite)
