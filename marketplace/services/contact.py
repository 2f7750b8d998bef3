"""
Contact form service. Stores submissions for the support team to follow up.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.contact import ContactMessageRepository
from marketplace.models.contact import ContactMessage, ContactStatus
from marketplace.schemas.contact import ContactCreate
from marketplace.utils.exceptions import UpstreamError
import logging

logger = logging.getLogger(__name__)


class ContactService:

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.contact_repo = ContactMessageRepository(db_session)

    async def submit_contact(self, contact_data: ContactCreate, ip_address: Optional[str] = None) -> ContactMessage:
        """
        Save a contact form submission.

        Raises:
            UpstreamError: If the submission cannot be stored; the cause is only logged
        """
        create_data = contact_data.model_dump()
        create_data.update({
            "status": ContactStatus.NEW,
            "ip_address": ip_address,
        })

        try:
            submission = await self.contact_repo.create(create_data)
        except Exception as e:
            logger.error(f"Failed to save contact submission from {contact_data.email}: {e}")
            raise UpstreamError("Failed to submit contact form")

        logger.info(f"Contact submission {submission.id} received: {submission.subject}")
        return submission
