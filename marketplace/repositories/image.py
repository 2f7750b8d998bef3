"""
Repository for PropertyImage model operations.
Handles database queries and operations for property images.
"""

import uuid
import logging
from typing import List, Optional, Dict, Any
from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.image import PropertyImage
from marketplace.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """
        Get all images for a specific property.

        Returns:
            List of property images ordered by primary status and gallery order
        """
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.is_primary.desc(), PropertyImage.order_index.asc())
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_primary_image(self, property_id: uuid.UUID) -> Optional[PropertyImage]:
        query = select(PropertyImage).where(
            and_(
                PropertyImage.property_id == property_id,
                PropertyImage.is_primary == True  # noqa: E712
            )
        )

        result = await self.db.execute(query)
        return result.scalars().first()

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        query = select(func.count(PropertyImage.id)).where(
            PropertyImage.property_id == property_id
        )

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def add_image(self, image_data: Dict[str, Any]) -> PropertyImage:
        """
        Insert one image row and commit it on its own.

        Each uploaded file is recorded independently, so an earlier row
        survives a later failure in the same upload.
        """
        return await self.create(image_data)

    async def update_primary_status(self, property_id: uuid.UUID,
                                    new_primary_id: uuid.UUID) -> bool:
        """
        Set one image as primary and remove primary status from the others.

        Returns:
            True if update was successful
        """
        try:
            await self.db.execute(
                update(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .values(is_primary=False)
            )

            result = await self.db.execute(
                update(PropertyImage)
                .where(PropertyImage.id == new_primary_id)
                .values(is_primary=True)
            )
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update primary image for property {property_id}: {e}")
            raise
