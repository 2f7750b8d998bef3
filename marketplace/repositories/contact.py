"""
Contact message repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.base import BaseRepository
from marketplace.models.contact import ContactMessage


class ContactMessageRepository(BaseRepository[ContactMessage]):

    def __init__(self, db: AsyncSession):
        super().__init__(ContactMessage, db)
