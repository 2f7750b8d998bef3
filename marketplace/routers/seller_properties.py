"""
Seller portal listing endpoints.

Every route is scoped to the caller's own listings. A listing owned by
someone else is reported exactly like a missing one.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional, Literal
import math

from marketplace.config import settings
from marketplace.models.user import User
from marketplace.models.property import PropertyType, ListingType, PropertyStatus
from marketplace.services.property import PropertyService
from marketplace.schemas.property import PropertyUpdate, PropertyResponse, PropertyListResponse
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import require_seller, get_property_service
from marketplace.utils.permissions import READ_OWN_PROPERTIES, WRITE_OWN_PROPERTIES


router = APIRouter(prefix="/seller/properties", tags=["Seller Portal"])


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List my properties",
    description="The caller's listings in every status except soft-deleted",
    responses=get_error_responses(401, 403)
)
async def list_my_properties(
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
    property_type: Optional[PropertyType] = Query(None),
    listing_type: Optional[ListingType] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort_by: Literal["created_at", "updated_at", "price", "views_count", "title"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    current_user: User = Depends(require_seller(READ_OWN_PROPERTIES)),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.list_seller_properties(
        current_user,
        page=page,
        page_size=page_size,
        status=status_filter,
        property_type=property_type,
        listing_type=listing_type,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order
    )

    total_pages = math.ceil(total / page_size) if total > 0 else 0

    return PropertyListResponse(
        properties=[
            PropertyResponse.model_validate(p.to_dict(include_owner=True, include_images=True))
            for p in properties
        ],
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
    summary="Get my property",
    description="One owned listing with its images and inquiries",
    responses=get_error_responses(401, 403, 404)
)
async def get_my_property(
    property_id: str,
    current_user: User = Depends(require_seller(READ_OWN_PROPERTIES)),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    result = await property_service.get_seller_property(property_id, current_user)
    return PropertyResponse.model_validate(result)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update my property",
    responses=get_error_responses(400, 401, 403, 404)
)
async def update_my_property(
    property_id: str,
    property_data: PropertyUpdate,
    current_user: User = Depends(require_seller(WRITE_OWN_PROPERTIES)),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Update an owned listing.

    Raises:
        PropertyAccessDeniedError: If the listing is unknown or owned by someone else
    """
    property_obj = await property_service.update_property(
        property_id, property_data, current_user, seller_scope=True
    )
    return PropertyResponse.model_validate(property_obj.to_dict(include_owner=True, include_images=True))


@router.delete(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Deactivate my property",
    description="Take an owned listing off the market; active listings must be changed first",
    responses=get_error_responses(400, 401, 403, 404)
)
async def delete_my_property(
    property_id: str,
    current_user: User = Depends(require_seller(WRITE_OWN_PROPERTIES)),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.deactivate_property(property_id, current_user)
    return PropertyResponse.model_validate(property_obj.to_dict(include_owner=True, include_images=True))
