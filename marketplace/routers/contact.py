"""
Public contact form.
"""

from fastapi import APIRouter, Depends, Request, status

from marketplace.services.contact import ContactService
from marketplace.schemas.contact import ContactCreate, ContactSubmittedResponse
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import get_contact_service


router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post(
    "",
    response_model=ContactSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit contact form",
    description="Send a message to the marketplace team. No account is needed.",
    responses=get_error_responses(400, 500)
)
async def submit_contact(
    contact_data: ContactCreate,
    request: Request,
    contact_service: ContactService = Depends(get_contact_service)
) -> ContactSubmittedResponse:
    submission = await contact_service.submit_contact(
        contact_data,
        ip_address=request.client.host if request.client else None
    )

    return ContactSubmittedResponse(submission_id=str(submission.id))
