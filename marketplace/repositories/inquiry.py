"""
Inquiry repository for buyer messages and the seller response workflow.
All seller-facing reads are scoped through the owning property.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, case, desc, asc
from marketplace.repositories.base import BaseRepository
from marketplace.models.inquiry import Inquiry, InquiryStatus, InquiryPriority, PRIORITY_RANK
from marketplace.models.property import Property
from datetime import datetime
from typing import Optional, List, Tuple, Dict, Iterable
import uuid
import logging

logger = logging.getLogger(__name__)


class InquiryRepository(BaseRepository[Inquiry]):
    """Repository for inquiries and their seller-scoped listing queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(Inquiry, db)

    async def list_for_seller(
        self,
        seller_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20,
        status: Optional[InquiryStatus] = None,
        property_id: Optional[uuid.UUID] = None,
        priority: Optional[InquiryPriority] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Tuple[List[Inquiry], int]:
        """
        List inquiries on properties owned by a seller.

        Args:
            seller_id: Owner of the properties
            skip: Number of records to skip
            limit: Maximum number of records to return
            status: Optional status filter
            property_id: Optional property filter
            priority: Optional priority filter
            sort_by: created_at, updated_at or priority
            sort_order: 'asc' or 'desc'

        Returns:
            Tuple of (inquiries list, total count)
        """
        conditions = [Property.seller_id == seller_id]
        if status:
            conditions.append(Inquiry.status == status)
        if property_id:
            conditions.append(Inquiry.property_id == property_id)
        if priority:
            conditions.append(Inquiry.priority == priority)

        try:
            count_query = (
                select(func.count(Inquiry.id))
                .join(Property, Inquiry.property_id == Property.id)
                .where(and_(*conditions))
            )
            total_count = (await self.db.execute(count_query)).scalar() or 0

            if sort_by == "priority":
                # Enum columns sort by name, so rank them explicitly
                sort_field = case(
                    {p: rank for p, rank in PRIORITY_RANK.items()},
                    value=Inquiry.priority
                )
            elif sort_by == "updated_at":
                sort_field = Inquiry.updated_at
            else:
                sort_field = Inquiry.created_at

            query = (
                select(Inquiry)
                .join(Property, Inquiry.property_id == Property.id)
                .where(and_(*conditions))
                .order_by(asc(sort_field) if sort_order == "asc" else desc(sort_field))
                .offset(skip)
                .limit(limit)
            )
            result = await self.db.execute(query)
            inquiries = result.scalars().all()

            logger.debug(f"Retrieved {len(inquiries)} of {total_count} inquiries for seller {seller_id}")
            return list(inquiries), total_count
        except Exception as e:
            logger.error(f"Failed to list inquiries for seller {seller_id}: {e}")
            raise

    async def count_by_property(
        self,
        property_ids: Iterable[uuid.UUID],
        since: Optional[datetime] = None
    ) -> Dict[uuid.UUID, int]:
        ids = list(property_ids)
        if not ids:
            return {}

        query = (
            select(Inquiry.property_id, func.count(Inquiry.id))
            .where(Inquiry.property_id.in_(ids))
            .group_by(Inquiry.property_id)
        )
        if since is not None:
            query = query.where(Inquiry.created_at >= since)

        result = await self.db.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def count_for_seller(
        self,
        seller_id: uuid.UUID,
        start: datetime,
        end: datetime
    ) -> Tuple[int, int]:
        """
        Inquiries on a seller's listings received inside a window.

        Returns:
            Tuple of (total inquiries, inquiries with a response message)
        """
        result = await self.db.execute(
            select(
                func.count(Inquiry.id),
                func.count(Inquiry.response_message)
            )
            .join(Property, Inquiry.property_id == Property.id)
            .where(
                and_(
                    Property.seller_id == seller_id,
                    Inquiry.created_at >= start,
                    Inquiry.created_at < end
                )
            )
        )
        total, responded = result.one()
        return total or 0, responded or 0
