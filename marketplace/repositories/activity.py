"""
Repositories for analytics events and favorites.
Provides the aggregate reads used by the analytics service.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, delete
from marketplace.repositories.base import BaseRepository
from marketplace.models.activity import AnalyticsEvent, AnalyticsEventType, PropertyFavorite
from datetime import datetime
from typing import Dict, List, Optional, Any, Iterable
import uuid
import logging

logger = logging.getLogger(__name__)


class AnalyticsEventRepository(BaseRepository[AnalyticsEvent]):
    """Analytics event storage."""

    def __init__(self, db: AsyncSession):
        super().__init__(AnalyticsEvent, db)

    async def record(
        self,
        event_type: AnalyticsEventType,
        property_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AnalyticsEvent:
        return await self.create({
            "event_type": event_type.value,
            "property_id": property_id,
            "user_id": user_id,
            "details": details or {},
        })

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        since: Optional[datetime] = None
    ) -> List[AnalyticsEvent]:
        query = select(AnalyticsEvent).where(AnalyticsEvent.user_id == user_id)
        if since is not None:
            query = query.where(AnalyticsEvent.created_at >= since)

        result = await self.db.execute(query.order_by(AnalyticsEvent.created_at))
        return list(result.scalars().all())


class FavoriteRepository(BaseRepository[PropertyFavorite]):
    """Saved listings per user."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyFavorite, db)

    async def get_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[PropertyFavorite]:
        result = await self.db.execute(
            select(PropertyFavorite).where(
                and_(
                    PropertyFavorite.user_id == user_id,
                    PropertyFavorite.property_id == property_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def remove(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        try:
            result = await self.db.execute(
                delete(PropertyFavorite).where(
                    and_(
                        PropertyFavorite.user_id == user_id,
                        PropertyFavorite.property_id == property_id
                    )
                )
            )
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove favorite {property_id} for user {user_id}: {e}")
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
            select(PropertyFavorite.property_id, func.count(PropertyFavorite.id))
            .where(PropertyFavorite.property_id.in_(ids))
            .group_by(PropertyFavorite.property_id)
        )
        if since is not None:
            query = query.where(PropertyFavorite.created_at >= since)

        result = await self.db.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def list_for_user(self, user_id: uuid.UUID, since: Optional[datetime] = None) -> List[PropertyFavorite]:
        query = select(PropertyFavorite).where(PropertyFavorite.user_id == user_id)
        if since is not None:
            query = query.where(PropertyFavorite.created_at >= since)

        result = await self.db.execute(query)
        return list(result.scalars().all())
