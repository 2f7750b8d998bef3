"""
Public inquiry submission.
"""

from fastapi import APIRouter, Depends, Request, status
from typing import Optional

from marketplace.models.user import User
from marketplace.services.inquiry import InquiryService
from marketplace.schemas.inquiry import InquiryCreate, InquirySubmittedResponse
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import get_optional_current_user, get_inquiry_service


router = APIRouter(prefix="/inquiries", tags=["Inquiries"])


@router.post(
    "",
    response_model=InquirySubmittedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit inquiry",
    description="Contact the seller of an active listing. No account is needed.",
    responses=get_error_responses(400, 404, 500)
)
async def submit_inquiry(
    inquiry_data: InquiryCreate,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_current_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquirySubmittedResponse:
    """
    Submit a buyer inquiry.

    Raises:
        ValidationError: If the message is shorter than 10 characters
        PropertyNotFoundError: If the listing is unknown, deleted or not active
    """
    inquiry = await inquiry_service.submit_inquiry(
        inquiry_data,
        current_user,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )

    return InquirySubmittedResponse(
        id=str(inquiry.id),
        property_id=str(inquiry.property_id),
        status=inquiry.status,
        created_at=inquiry.created_at
    )
