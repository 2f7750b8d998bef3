"""
Inquiry service for buyer submissions and the seller response workflow.
Sellers only ever see inquiries on listings they own.
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.inquiry import InquiryRepository
from marketplace.repositories.property import PropertyRepository
from marketplace.models.inquiry import (
    Inquiry,
    InquiryStatus,
    InquiryPriority,
    ResponseType,
)
from marketplace.models.property import PropertyStatus
from marketplace.models.user import User
from marketplace.schemas.inquiry import (
    InquiryCreate,
    InquiryRespondRequest,
    InquiryUpdate,
    BulkInquiryRequest,
)
from marketplace.services.audit import AuditLogger
from marketplace.services.property import parse_id
from marketplace.utils.exceptions import (
    ValidationError,
    ConflictError,
    UpstreamError,
    PropertyNotFoundError,
    InquiryNotFoundError
)
import math
import uuid
import logging

logger = logging.getLogger(__name__)

BULK_STATUS_REQUIRED = "Status is required for update_status action"
BULK_PRIORITY_REQUIRED = "Priority is required for mark_priority action"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InquiryService:
    """Inquiry lifecycle: submit, respond, update, bulk operations and close."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.inquiry_repo = InquiryRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.audit = AuditLogger(db_session)

    async def submit_inquiry(
        self,
        inquiry_data: InquiryCreate,
        current_user: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Inquiry:
        """
        Record a buyer inquiry on an active listing.

        No authentication is needed; a signed-in buyer is linked to the inquiry.

        Raises:
            PropertyNotFoundError: If the listing is unknown, deleted or not active
        """
        parsed_id = parse_id(inquiry_data.property_id)
        property_obj = await self.property_repo.get_by_id(parsed_id) if parsed_id else None

        if property_obj is None or property_obj.is_deleted or property_obj.status != PropertyStatus.ACTIVE:
            raise PropertyNotFoundError()

        create_data = inquiry_data.model_dump()
        create_data.update({
            "property_id": property_obj.id,
            "buyer_id": current_user.id if current_user else None,
            "status": InquiryStatus.NEW,
            "priority": InquiryPriority.MEDIUM,
            "ip_address": ip_address,
            "user_agent": user_agent[:500] if user_agent else None,
        })

        try:
            inquiry = await self.inquiry_repo.create(create_data)
        except Exception as e:
            logger.error(f"Failed to save inquiry for property {parsed_id}: {e}")
            raise UpstreamError("Failed to submit inquiry")

        logger.info(f"Inquiry {inquiry.id} submitted for property {parsed_id}")
        return inquiry

    async def get_inquiry(self, inquiry_id: str, current_user: User) -> Inquiry:
        inquiry = await self._get_owned(inquiry_id, current_user)
        inquiry_uuid = inquiry.id
        await self.audit.log(
            current_user.id, "view_inquiry_details", "inquiry", inquiry_uuid,
            {"property_id": str(inquiry.property_id)}
        )
        return await self._fresh(inquiry_uuid)

    async def list_inquiries(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[InquiryStatus] = None,
        property_id: Optional[str] = None,
        priority: Optional[InquiryPriority] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        """
        Inquiries on the caller's listings, newest first by default.

        Returns:
            Dictionary with inquiries and pagination metadata
        """
        parsed_property_id = None
        if property_id:
            parsed_property_id = parse_id(property_id)
            if parsed_property_id is None:
                raise ValidationError("Invalid property_id")

        inquiries, total = await self.inquiry_repo.list_for_seller(
            current_user.id,
            skip=(page - 1) * limit,
            limit=limit,
            status=status,
            property_id=parsed_property_id,
            priority=priority,
            sort_by=sort_by,
            sort_order=sort_order
        )

        return {
            "inquiries": [inquiry.to_dict(include_property=True) for inquiry in inquiries],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total > 0 else 0,
            },
        }

    async def respond_to_inquiry(self, respond_data: InquiryRespondRequest, current_user: User) -> Inquiry:
        """
        Send the single response to a new inquiry.

        Raises:
            InquiryNotFoundError: If the inquiry is unknown or not on the caller's listing
            ConflictError: If the inquiry was already responded to or closed
        """
        inquiry = await self._get_owned(respond_data.inquiry_id, current_user)

        if inquiry.has_response:
            raise ConflictError("Inquiry has already been responded to")

        update_data = respond_data.model_dump(exclude={"inquiry_id"}, exclude_none=True)
        update_data.setdefault("response_type", ResponseType.ACCEPTED)
        update_data["status"] = InquiryStatus.RESPONDED
        update_data["responded_at"] = _now()

        inquiry_uuid = inquiry.id
        try:
            inquiry = await self.inquiry_repo.update(inquiry, update_data)
        except Exception as e:
            logger.error(f"Failed to respond to inquiry {inquiry_uuid}: {e}")
            raise UpstreamError("Failed to respond to inquiry")

        await self.audit.log(
            current_user.id, "respond_to_inquiry", "inquiry", inquiry_uuid,
            {"response_type": update_data["response_type"].value}
        )
        return await self._fresh(inquiry_uuid)

    async def update_inquiry(self, inquiry_id: str, update: InquiryUpdate, current_user: User) -> Inquiry:
        """
        Partial update of an inquiry.

        Unlike a response this may change an already answered inquiry.
        """
        inquiry = await self._get_owned(inquiry_id, current_user)

        update_data = update.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        previous_status = inquiry.status
        inquiry_uuid = inquiry.id
        try:
            inquiry = await self.inquiry_repo.update(inquiry, update_data)
        except Exception as e:
            logger.error(f"Failed to update inquiry {inquiry_uuid}: {e}")
            raise UpstreamError("Failed to update inquiry")

        await self.audit.log(
            current_user.id, "update_inquiry", "inquiry", inquiry_uuid,
            {
                "updated_fields": sorted(update_data.keys()),
                "previous_status": previous_status.value,
                "new_status": inquiry.status.value,
            }
        )
        return await self._fresh(inquiry_uuid)

    async def close_inquiry(self, inquiry_id: str, current_user: User) -> Inquiry:
        """Seller-side delete: the inquiry is closed, never removed."""
        inquiry = await self._get_owned(inquiry_id, current_user)

        previous_status = inquiry.status
        inquiry_uuid = inquiry.id
        try:
            inquiry = await self.inquiry_repo.update(inquiry, {"status": InquiryStatus.CLOSED})
        except Exception as e:
            logger.error(f"Failed to close inquiry {inquiry_uuid}: {e}")
            raise UpstreamError("Failed to delete inquiry")

        await self.audit.log(
            current_user.id, "delete_inquiry", "inquiry", inquiry_uuid,
            {"previous_status": previous_status.value}
        )
        return await self._fresh(inquiry_uuid)

    async def bulk_operate(self, request: BulkInquiryRequest, current_user: User) -> Dict[str, Any]:
        """
        Apply one action to many inquiries.

        Each id is checked and committed on its own, so one failure never
        undoes the others.

        Returns:
            Dictionary with per-id results, per-id errors and a summary
        """
        actor_id = current_user.id
        results: List[Dict[str, str]] = []
        errors: List[Dict[str, str]] = []

        for raw_id in request.inquiry_ids:
            parsed_id = parse_id(raw_id)
            inquiry = await self.inquiry_repo.get_by_id(parsed_id) if parsed_id else None

            if inquiry is None:
                errors.append({"id": raw_id, "error": "Inquiry not found"})
                continue

            if inquiry.property_rel.seller_id != actor_id:
                errors.append({"id": raw_id, "error": "Access denied"})
                continue

            if request.action == "update_status":
                if request.data.status is None:
                    errors.append({"id": raw_id, "error": BULK_STATUS_REQUIRED})
                    continue
                changes = {"status": request.data.status}
            elif request.action == "mark_priority":
                if request.data.priority is None:
                    errors.append({"id": raw_id, "error": BULK_PRIORITY_REQUIRED})
                    continue
                changes = {"priority": request.data.priority}
            else:
                changes = {"status": InquiryStatus.CLOSED}

            try:
                updated = await self.inquiry_repo.update(inquiry, changes)
            except Exception as e:
                logger.error(f"Bulk {request.action} failed for inquiry {raw_id}: {e}")
                errors.append({"id": raw_id, "error": "Failed to update inquiry"})
                continue

            results.append({"id": raw_id, "status": updated.status.value})

        await self.audit.log(
            actor_id, f"bulk_{request.action}", "inquiry", None,
            {"successful": len(results), "failed": len(errors)}
        )

        return {
            "results": results,
            "errors": errors,
            "summary": {
                "total": len(request.inquiry_ids),
                "successful": len(results),
                "failed": len(errors),
            },
        }

    async def _get_owned(self, inquiry_id: str, current_user: User) -> Inquiry:
        """
        Only the seller of the listing may see an inquiry; administrators have no
        override here. Anyone else gets the same not-found error as a missing id.
        """
        parsed_id = parse_id(inquiry_id)
        inquiry = await self.inquiry_repo.get_by_id(parsed_id) if parsed_id else None

        if inquiry is None or inquiry.property_rel.seller_id != current_user.id:
            raise InquiryNotFoundError()

        return inquiry

    async def _fresh(self, inquiry_id: uuid.UUID) -> Inquiry:
        refreshed = await self.inquiry_repo.reload(inquiry_id)
        if refreshed is None:
            raise InquiryNotFoundError()
        return refreshed
