"""
Seller portal inquiry workflow: listing, responding, bulk actions and closing.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional, Literal

from marketplace.models.user import User
from marketplace.models.inquiry import InquiryStatus, InquiryPriority
from marketplace.services.inquiry import InquiryService
from marketplace.schemas.inquiry import (
    InquiryRespondRequest,
    InquiryUpdate,
    BulkInquiryRequest,
    BulkInquiryResponse,
    InquiryResponse,
    InquiryListResponse
)
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import require_seller, get_inquiry_service
from marketplace.utils.permissions import READ_OWN_INQUIRIES, WRITE_OWN_INQUIRIES


router = APIRouter(prefix="/seller/inquiries", tags=["Seller Portal"])


@router.get(
    "",
    response_model=InquiryListResponse,
    status_code=status.HTTP_200_OK,
    summary="List inquiries on my properties",
    responses=get_error_responses(400, 401, 403)
)
async def list_inquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    property_id: Optional[str] = Query(None),
    priority: Optional[InquiryPriority] = Query(None),
    sort_by: Literal["created_at", "updated_at", "priority"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    current_user: User = Depends(require_seller(READ_OWN_INQUIRIES)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryListResponse:
    result = await inquiry_service.list_inquiries(
        current_user,
        page=page,
        limit=limit,
        status=status_filter,
        property_id=property_id,
        priority=priority,
        sort_by=sort_by,
        sort_order=sort_order
    )
    return InquiryListResponse.model_validate(result)


@router.post(
    "",
    response_model=InquiryResponse,
    status_code=status.HTTP_200_OK,
    summary="Respond to inquiry",
    description="Answer a new or in-progress inquiry; an inquiry can only be answered once",
    responses=get_error_responses(400, 401, 403, 404)
)
async def respond_to_inquiry(
    respond_data: InquiryRespondRequest,
    current_user: User = Depends(require_seller(WRITE_OWN_INQUIRIES)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    """
    Record the seller's response.

    Raises:
        InquiryNotFoundError: If the inquiry is unknown or on someone else's listing
        ConflictError: If the inquiry was already responded to or closed
    """
    inquiry = await inquiry_service.respond_to_inquiry(respond_data, current_user)
    return InquiryResponse.model_validate(inquiry.to_dict(include_property=True))


@router.put(
    "",
    response_model=BulkInquiryResponse,
    status_code=status.HTTP_200_OK,
    summary="Bulk inquiry action",
    description="Update status, mark priority or archive many inquiries; each id succeeds or fails on its own",
    responses=get_error_responses(400, 401, 403)
)
async def bulk_update_inquiries(
    request: BulkInquiryRequest,
    current_user: User = Depends(require_seller(WRITE_OWN_INQUIRIES)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> BulkInquiryResponse:
    result = await inquiry_service.bulk_operate(request, current_user)
    return BulkInquiryResponse.model_validate(result)


@router.get(
    "/{inquiry_id}",
    response_model=InquiryResponse,
    status_code=status.HTTP_200_OK,
    summary="Get inquiry",
    responses=get_error_responses(401, 403, 404)
)
async def get_inquiry(
    inquiry_id: str,
    current_user: User = Depends(require_seller(READ_OWN_INQUIRIES)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    inquiry = await inquiry_service.get_inquiry(inquiry_id, current_user)
    return InquiryResponse.model_validate(inquiry.to_dict(include_property=True))


@router.put(
    "/{inquiry_id}",
    response_model=InquiryResponse,
    status_code=status.HTTP_200_OK,
    summary="Update inquiry",
    description="Overwrite status, priority, notes or response fields",
    responses=get_error_responses(400, 401, 403, 404)
)
async def update_inquiry(
    inquiry_id: str,
    update: InquiryUpdate,
    current_user: User = Depends(require_seller(WRITE_OWN_INQUIRIES)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    inquiry = await inquiry_service.update_inquiry(inquiry_id, update, current_user)
    return InquiryResponse.model_validate(inquiry.to_dict(include_property=True))


@router.delete(
    "/{inquiry_id}",
    response_model=InquiryResponse,
    status_code=status.HTTP_200_OK,
    summary="Close inquiry",
    responses=get_error_responses(401, 403, 404)
)
async def close_inquiry(
    inquiry_id: str,
    current_user: User = Depends(require_seller(WRITE_OWN_INQUIRIES)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    inquiry = await inquiry_service.close_inquiry(inquiry_id, current_user)
    return InquiryResponse.model_validate(inquiry.to_dict(include_property=True))
