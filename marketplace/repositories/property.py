"""
Property repository for managing property listings with search and filtering.
Provides the listing queries, counters and the cascading hard delete.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, or_, func, desc, asc
from marketplace.repositories.base import BaseRepository
from marketplace.models.property import Property, PropertyType, ListingType, PropertyStatus
from marketplace.models.image import PropertyImage
from marketplace.models.inquiry import Inquiry
from marketplace.models.activity import AnalyticsEvent, PropertyFavorite
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple, Sequence
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "updated_at", "price", "views_count", "title")


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        search_text: Optional[str] = None,
        city: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        listing_type: Optional[ListingType] = None,
        statuses: Optional[Sequence[PropertyStatus]] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_bedrooms: Optional[int] = None,
        min_bathrooms: Optional[int] = None,
        seller_id: Optional[uuid.UUID] = None,
        is_featured: Optional[bool] = None,
        include_deleted: bool = False
    ):
        self.search_text = search_text
        self.city = city
        self.property_type = property_type
        self.listing_type = listing_type
        self.statuses = statuses
        self.min_price = min_price
        self.max_price = max_price
        self.min_bedrooms = min_bedrooms
        self.min_bathrooms = min_bathrooms
        self.seller_id = seller_id
        self.is_featured = is_featured
        self.include_deleted = include_deleted


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property management with search and filtering capabilities.
    Every listing query excludes soft-deleted rows unless asked otherwise.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        """
        Create a new property with validation.

        Args:
            property_data: Dictionary containing property information

        Returns:
            Created property instance

        Raises:
            ValueError: If validation fails
            Exception: If database operation fails
        """
        try:
            Property(**property_data).validate_all()

            created_property = await self.create(property_data)
            logger.info(f"Created property: {created_property.title} (ID: {created_property.id})")
            return created_property
        except ValueError as e:
            logger.error(f"Property validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create property: {e}")
            raise

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order_direction: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            order_by: Field to order by
            order_direction: 'asc' or 'desc'

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = self._build_filter_conditions(filters)

            count_query = select(func.count(Property.id))
            query = select(Property)
            if conditions:
                count_query = count_query.where(and_(*conditions))
                query = query.where(and_(*conditions))

            total_count = (await self.db.execute(count_query)).scalar() or 0

            order_field = getattr(Property, order_by if order_by in SORTABLE_FIELDS else "created_at")
            if order_direction.lower() == "asc":
                query = query.order_by(asc(order_field))
            else:
                query = query.order_by(desc(order_field))

            result = await self.db.execute(query.offset(skip).limit(limit))
            properties = result.scalars().all()

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return list(properties), total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        conditions = []

        if not filters.include_deleted:
            conditions.append(Property.deleted_at.is_(None))

        if filters.statuses:
            conditions.append(Property.status.in_(list(filters.statuses)))

        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)
        if filters.listing_type:
            conditions.append(Property.listing_type == filters.listing_type)

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        # Bedroom and bathroom filters are minimums
        if filters.min_bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.min_bedrooms)
        if filters.min_bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.min_bathrooms)

        if filters.seller_id:
            conditions.append(Property.seller_id == filters.seller_id)

        if filters.is_featured is not None:
            conditions.append(Property.is_featured == filters.is_featured)

        if filters.search_text:
            search_term = f"%{filters.search_text}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term),
                    Property.description.ilike(search_term),
                    Property.city.ilike(search_term),
                    Property.address.ilike(search_term)
                )
            )

        return conditions

    async def increment_views(self, property_id: uuid.UUID) -> None:
        """Atomically bump the detail-view counter."""
        try:
            await self.db.execute(
                update(Property)
                .where(Property.id == property_id)
                .values(views_count=Property.views_count + 1)
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to increment views for property {property_id}: {e}")
            raise

    async def delete_with_dependents(self, property_obj: Property) -> List[str]:
        """
        Delete a property and every row that references it in one transaction.

        Images, inquiries, analytics events and favorites are removed before the
        property itself; nothing is committed unless all deletes succeed.

        Args:
            property_obj: Loaded property to delete

        Returns:
            Storage keys of the deleted images, for cleanup after commit
        """
        property_id = property_obj.id
        try:
            keys_result = await self.db.execute(
                select(PropertyImage.storage_key).where(PropertyImage.property_id == property_id)
            )
            storage_keys = list(keys_result.scalars().all())

            for model in (PropertyImage, Inquiry, AnalyticsEvent, PropertyFavorite):
                await self.db.execute(delete(model).where(model.property_id == property_id))
            await self.db.execute(delete(Property).where(Property.id == property_id))

            await self.db.commit()
            logger.info(f"Hard deleted property {property_id} with {len(storage_keys)} images")
            return storage_keys
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to hard delete property {property_id}: {e}")
            raise

    async def list_for_analytics(
        self,
        since: datetime,
        statuses: Sequence[PropertyStatus],
        location: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        seller_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None
    ) -> List[Property]:
        """Non-deleted properties created since a point in time, oldest first."""
        conditions = [
            Property.deleted_at.is_(None),
            Property.created_at >= since,
            Property.status.in_(list(statuses)),
        ]
        if location:
            conditions.append(Property.city.ilike(f"%{location}%"))
        if property_type:
            conditions.append(Property.property_type == property_type)
        if seller_id:
            conditions.append(Property.seller_id == seller_id)

        query = select(Property).where(and_(*conditions)).order_by(asc(Property.created_at))
        if limit:
            query = query.limit(limit)

        try:
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to load properties for analytics: {e}")
            raise

    async def count_for_seller(
        self,
        seller_id: uuid.UUID,
        start: datetime,
        end: datetime
    ) -> Tuple[int, int, int]:
        """
        Totals for a seller's listings created inside a window.

        Returns:
            Tuple of (total properties, active properties, summed views)
        """
        window = and_(
            Property.seller_id == seller_id,
            Property.deleted_at.is_(None),
            Property.created_at >= start,
            Property.created_at < end,
        )
        result = await self.db.execute(
            select(
                func.count(Property.id),
                func.count(Property.id).filter(Property.status == PropertyStatus.ACTIVE),
                func.coalesce(func.sum(Property.views_count), 0)
            ).where(window)
        )
        total, active, views = result.one()
        return total or 0, active or 0, int(views or 0)
