"""
Property service for managing property listings with business logic validation.
Handles the listing lifecycle, ownership checks, search and activity recording.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.inquiry import InquiryRepository
from marketplace.repositories.activity import AnalyticsEventRepository, FavoriteRepository
from marketplace.models.property import Property, PropertyType, ListingType, PropertyStatus
from marketplace.models.activity import AnalyticsEventType
from marketplace.models.user import User
from marketplace.schemas.property import PropertyCreate, PropertyUpdate
from marketplace.services.audit import AuditLogger
from marketplace.utils.storage import StorageBackend
from marketplace.utils.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    BadRequestError,
    UpstreamError,
    PropertyNotFoundError,
    PropertyAccessDeniedError,
    PropertyOwnershipError,
    PropertyStatusError
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Status changes allowed through an update; archiving has its own endpoint
STATUS_TRANSITIONS = {
    PropertyStatus.DRAFT: {PropertyStatus.PENDING},
    PropertyStatus.PENDING: {PropertyStatus.DRAFT, PropertyStatus.ACTIVE, PropertyStatus.INACTIVE},
    PropertyStatus.ACTIVE: {
        PropertyStatus.PENDING,
        PropertyStatus.INACTIVE,
        PropertyStatus.SOLD,
        PropertyStatus.RENTED,
    },
    PropertyStatus.INACTIVE: {PropertyStatus.PENDING, PropertyStatus.DRAFT},
    PropertyStatus.SOLD: {PropertyStatus.ACTIVE, PropertyStatus.INACTIVE},
    PropertyStatus.RENTED: {PropertyStatus.ACTIVE, PropertyStatus.INACTIVE},
    PropertyStatus.ARCHIVED: set(),
}

# Columns that may be cleared by sending null
NULLABLE_FIELDS = {"square_feet", "zip_code", "latitude", "longitude"}

ACTIVE_DELETE_MESSAGE = "Cannot delete active properties. Please deactivate first."


def parse_id(value: str) -> Optional[uuid.UUID]:
    """Parse a path id; malformed ids behave like unknown ones."""
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PropertyService:
    """
    Property service for managing property listings with comprehensive business logic.
    Only the owner or an administrator mutates a listing.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[StorageBackend] = None):
        self.db = db_session
        self.storage = storage
        self.property_repo = PropertyRepository(db_session)
        self.inquiry_repo = InquiryRepository(db_session)
        self.event_repo = AnalyticsEventRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)
        self.audit = AuditLogger(db_session)

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new listing owned by the caller.

        Listings start pending review unless the caller saves a draft.

        Raises:
            ForbiddenError: If the caller is not a seller or agent
            ValidationError: If property data is invalid
        """
        if not current_user.can_list_properties:
            raise ForbiddenError("Only agents and sellers can create properties")

        create_data = property_data.model_dump()
        requested_status = create_data.pop("status", None)
        create_data["status"] = (
            PropertyStatus.DRAFT if requested_status == PropertyStatus.DRAFT.value else PropertyStatus.PENDING
        )
        create_data["seller_id"] = current_user.id
        create_data["image_urls"] = []
        owner_id = current_user.id

        try:
            property_obj = await self.property_repo.create_property(create_data)
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to create property for user {owner_id}: {e}")
            raise UpstreamError("Failed to create property")

        property_uuid = property_obj.id
        logger.info(f"Property created by user {current_user.email}: {property_obj.title} (ID: {property_uuid})")
        await self._after_mutation(
            property_uuid,
            owner_id,
            "property_created",
            {"status": property_obj.status.value}
        )
        return await self._fresh(property_uuid)

    async def get_property_detail(self, property_id: str, current_user: Optional[User] = None) -> Dict[str, Any]:
        """
        Read one listing with its owner and images.

        Anyone may read an active listing; the owner and administrators may
        read it in any state until it is soft deleted. An authenticated read
        counts a view.

        Raises:
            PropertyNotFoundError: If the listing is unknown or not visible
        """
        property_obj = await self._get_visible(property_id, current_user)
        property_uuid = property_obj.id
        can_manage = current_user is not None and current_user.owns(property_obj.seller_id)

        if current_user is not None:
            await self._record_view(property_uuid, current_user.id)
            property_obj = await self._fresh(property_uuid)

        result = property_obj.to_dict(include_owner=True, include_images=True)

        if can_manage:
            inquiries = await self.inquiry_repo.get_multi(
                limit=100, filters={"property_id": property_obj.id}
            )
            result["inquiries"] = [inquiry.to_dict() for inquiry in inquiries]

        return result

    async def update_property(
        self,
        property_id: str,
        property_data: PropertyUpdate,
        current_user: User,
        seller_scope: bool = False
    ) -> Property:
        """
        Apply a partial update.

        Any change besides status sends an active listing back to pending,
        overriding a requested status. Status-only updates follow
        STATUS_TRANSITIONS and only administrators may activate.

        Args:
            property_id: Listing id from the path
            property_data: Partial update
            current_user: Caller
            seller_scope: Report ownership failures as not found

        Raises:
            ValidationError: If no usable field was provided
            PropertyOwnershipError: If the caller does not own the listing
            PropertyStatusError: If the status change is not allowed
        """
        property_obj = await self._get_for_write(property_id, current_user, seller_scope)
        property_uuid, actor_id = property_obj.id, current_user.id

        update_data = {
            field: value
            for field, value in property_data.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        requested_status = update_data.pop("status", None)
        changed_fields = sorted(update_data.keys())
        previous_status = property_obj.status

        if changed_fields and previous_status == PropertyStatus.ACTIVE:
            # Edited active listings go back to review
            update_data["status"] = PropertyStatus.PENDING
        elif requested_status is not None and requested_status != previous_status:
            self._check_transition(previous_status, requested_status, current_user)
            update_data["status"] = requested_status

        try:
            Property(**{**self._validation_fields(property_obj), **update_data}).validate_all()
        except ValueError as e:
            raise ValidationError(str(e))

        try:
            property_obj = await self.property_repo.update(property_obj, update_data)
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise UpstreamError("Failed to update property")

        details = {
            "fields": changed_fields,
            "previous_status": previous_status.value,
            "status": property_obj.status.value,
        }
        logger.info(f"Property {property_uuid} updated by {current_user.email}: {details}")

        await self._record_event(AnalyticsEventType.PROPERTY_UPDATED, property_uuid, actor_id, details)
        await self._after_mutation(property_uuid, actor_id, "property_updated", details)
        return await self._fresh(property_uuid)

    async def archive_property(self, property_id: str, current_user: User) -> Property:
        """
        Archive a listing (generic delete).

        Raises:
            BadRequestError: If the listing is active or already archived
        """
        property_obj = await self._get_for_write(property_id, current_user, seller_scope=False)
        property_uuid, actor_id = property_obj.id, current_user.id

        if property_obj.status == PropertyStatus.ACTIVE:
            raise BadRequestError(ACTIVE_DELETE_MESSAGE)
        if property_obj.status == PropertyStatus.ARCHIVED:
            raise BadRequestError("Property is already archived")

        previous_status = property_obj.status
        try:
            property_obj = await self.property_repo.update(property_obj, {
                "status": PropertyStatus.ARCHIVED,
                "archived_at": _now(),
                "archived_by": actor_id,
            })
        except Exception as e:
            logger.error(f"Failed to archive property {property_id}: {e}")
            raise UpstreamError("Failed to archive property")

        details = {"previous_status": previous_status.value}
        await self._record_event(AnalyticsEventType.PROPERTY_ARCHIVED, property_uuid, actor_id, details)
        await self._after_mutation(property_uuid, actor_id, "property_archived", details)
        return await self._fresh(property_uuid)

    async def deactivate_property(self, property_id: str, current_user: User) -> Property:
        """
        Seller-portal delete: the listing becomes inactive.

        Raises:
            PropertyAccessDeniedError: If the listing is unknown or not owned
            BadRequestError: If the listing is active
        """
        property_obj = await self._get_for_write(property_id, current_user, seller_scope=True)
        property_uuid, actor_id = property_obj.id, current_user.id

        if property_obj.status == PropertyStatus.ACTIVE:
            raise BadRequestError(ACTIVE_DELETE_MESSAGE)

        previous_status = property_obj.status
        try:
            property_obj = await self.property_repo.update(property_obj, {"status": PropertyStatus.INACTIVE})
        except Exception as e:
            logger.error(f"Failed to deactivate property {property_id}: {e}")
            raise UpstreamError("Failed to delete property")

        await self._after_mutation(
            property_uuid, actor_id, "property_deactivated",
            {"previous_status": previous_status.value}
        )
        return await self._fresh(property_uuid)

    async def soft_delete_property(
        self,
        property_id: str,
        current_user: User,
        reason: Optional[str] = None,
        permanent: bool = False
    ) -> Dict[str, Any]:
        """
        Mark a listing deleted without removing it.

        Raises:
            NotFoundError: If the listing does not exist
            ForbiddenError: If the caller does not own it
            BadRequestError: If it is already deleted
        """
        property_obj = await self._get_for_delete(property_id, current_user)
        property_uuid, actor_id = property_obj.id, current_user.id

        if permanent:
            return await self.hard_delete_property(property_id, current_user)

        if property_obj.is_deleted:
            raise BadRequestError("Property is already deleted")

        try:
            property_obj = await self.property_repo.update(property_obj, {
                "deleted_at": _now(),
                "deletion_reason": reason,
            })
        except Exception as e:
            logger.error(f"Failed to soft delete property {property_id}: {e}")
            raise UpstreamError("Failed to delete property")

        await self._after_mutation(property_uuid, actor_id, "property_soft_deleted", {"reason": reason})
        property_obj = await self._fresh(property_uuid)

        return {
            "message": "Property deleted successfully",
            "id": str(property_obj.id),
            "deleted_at": property_obj.deleted_at.isoformat(),
            "permanent": False,
        }

    async def restore_property(self, property_id: str, current_user: User) -> Property:
        """
        Clear the soft-delete marker. The status is left as it was.

        Raises:
            BadRequestError: If the listing is not deleted
        """
        property_obj = await self._get_for_delete(property_id, current_user, action="restore")
        property_uuid, actor_id = property_obj.id, current_user.id

        if not property_obj.is_deleted:
            raise BadRequestError("Property is not deleted")

        try:
            property_obj = await self.property_repo.update(property_obj, {
                "deleted_at": None,
                "deletion_reason": None,
            })
        except Exception as e:
            logger.error(f"Failed to restore property {property_id}: {e}")
            raise UpstreamError("Failed to restore property")

        await self._after_mutation(property_uuid, actor_id, "property_restored", {})
        return await self._fresh(property_uuid)

    async def hard_delete_property(self, property_id: str, current_user: User) -> Dict[str, Any]:
        """
        Delete a listing with its images, inquiries, events and favorites.

        Database rows go in one transaction; stored image files are removed
        afterwards and a failure there only leaves orphaned files.
        """
        property_obj = await self._get_for_delete(property_id, current_user)
        deleted_id, actor_id = property_obj.id, current_user.id

        try:
            storage_keys = await self.property_repo.delete_with_dependents(property_obj)
        except Exception as e:
            logger.error(f"Failed to permanently delete property {deleted_id}: {e}")
            raise UpstreamError("Failed to delete property")

        for key in storage_keys:
            await self._delete_stored(key)

        await self.audit.log(
            actor_id, "property_hard_deleted", "property", deleted_id,
            {"images": len(storage_keys)}
        )

        return {
            "message": "Property permanently deleted",
            "id": str(deleted_id),
            "deleted_at": _now().isoformat(),
            "permanent": True,
        }

    async def search_properties(
        self,
        page: int,
        page_size: int,
        current_user: Optional[User] = None,
        search: Optional[str] = None,
        city: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        listing_type: Optional[ListingType] = None,
        min_price=None,
        max_price=None,
        bedrooms: Optional[int] = None,
        bathrooms: Optional[int] = None,
        is_featured: Optional[bool] = None,
        status: Optional[PropertyStatus] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Public search over active listings.

        Administrators may search other statuses. Authenticated searches are
        recorded as analytics events.
        """
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("min_price cannot be greater than max_price")

        statuses = [PropertyStatus.ACTIVE]
        if status is not None and current_user is not None and current_user.is_admin:
            statuses = [status]

        filters = PropertySearchFilters(
            search_text=search,
            city=city,
            property_type=property_type,
            listing_type=listing_type,
            statuses=statuses,
            min_price=min_price,
            max_price=max_price,
            min_bedrooms=bedrooms,
            min_bathrooms=bathrooms,
            is_featured=is_featured,
        )

        properties, total = await self.property_repo.search_properties(
            filters,
            skip=(page - 1) * page_size,
            limit=page_size,
            order_by=sort_by,
            order_direction=sort_order
        )

        if current_user is not None:
            result_ids = [p.id for p in properties]
            recorded = await self._record_event(
                AnalyticsEventType.SEARCH_PERFORMED,
                None,
                current_user.id,
                {
                    "search": search,
                    "city": city,
                    "property_type": property_type.value if property_type else None,
                    "results": total,
                }
            )
            if not recorded:
                properties = [await self.property_repo.reload(result_id) for result_id in result_ids]

        return properties, total

    async def list_seller_properties(
        self,
        current_user: User,
        page: int,
        page_size: int,
        status: Optional[PropertyStatus] = None,
        property_type: Optional[PropertyType] = None,
        listing_type: Optional[ListingType] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Tuple[List[Property], int]:
        """The caller's own non-deleted listings in every status."""
        filters = PropertySearchFilters(
            search_text=search,
            property_type=property_type,
            listing_type=listing_type,
            statuses=[status] if status else None,
            seller_id=current_user.id,
        )
        return await self.property_repo.search_properties(
            filters,
            skip=(page - 1) * page_size,
            limit=page_size,
            order_by=sort_by,
            order_direction=sort_order
        )

    async def get_seller_property(self, property_id: str, current_user: User) -> Dict[str, Any]:
        property_obj = await self._get_for_write(property_id, current_user, seller_scope=True)
        inquiries = await self.inquiry_repo.get_multi(limit=100, filters={"property_id": property_obj.id})

        result = property_obj.to_dict(include_owner=True, include_images=True)
        result["inquiries"] = [inquiry.to_dict() for inquiry in inquiries]
        return result

    async def add_favorite(self, property_id: str, current_user: User) -> bool:
        property_obj = await self._get_visible(property_id, current_user)

        if await self.favorite_repo.get_favorite(current_user.id, property_obj.id) is None:
            try:
                await self.favorite_repo.create({"user_id": current_user.id, "property_id": property_obj.id})
            except Exception as e:
                logger.error(f"Failed to favorite property {property_id}: {e}")
                raise UpstreamError("Failed to save favorite")

        return True

    async def remove_favorite(self, property_id: str, current_user: User) -> bool:
        parsed_id = parse_id(property_id)
        if parsed_id is None:
            raise PropertyNotFoundError()

        try:
            await self.favorite_repo.remove(current_user.id, parsed_id)
        except Exception as e:
            logger.error(f"Failed to remove favorite {parsed_id}: {e}")
            raise UpstreamError("Failed to remove favorite")
        return False

    # Private helpers

    async def _get_visible(self, property_id: str, current_user: Optional[User]) -> Property:
        parsed_id = parse_id(property_id)
        property_obj = await self.property_repo.get_by_id(parsed_id) if parsed_id else None

        if property_obj is None or property_obj.is_deleted:
            raise PropertyNotFoundError()

        if property_obj.status == PropertyStatus.ACTIVE:
            return property_obj

        if current_user is not None and current_user.owns(property_obj.seller_id):
            return property_obj

        raise PropertyNotFoundError()

    async def _get_for_write(self, property_id: str, current_user: User, seller_scope: bool) -> Property:
        """
        Load a non-deleted listing the caller may mutate.

        Seller-portal routes hide listings the caller does not own behind a
        not-found error; generic routes answer forbidden.
        """
        parsed_id = parse_id(property_id)
        property_obj = await self.property_repo.get_by_id(parsed_id) if parsed_id else None

        if property_obj is None or property_obj.is_deleted:
            if seller_scope:
                raise PropertyAccessDeniedError()
            raise PropertyNotFoundError()

        if not current_user.owns(property_obj.seller_id):
            logger.warning(f"User {current_user.id} denied write access to property {property_obj.id}")
            if seller_scope:
                raise PropertyAccessDeniedError()
            raise PropertyOwnershipError()

        return property_obj

    async def _get_for_delete(self, property_id: str, current_user: User, action: str = "delete") -> Property:
        """Load a listing, deleted or not, for the soft/hard delete and restore endpoints."""
        parsed_id = parse_id(property_id)
        property_obj = await self.property_repo.get_by_id(parsed_id) if parsed_id else None

        if property_obj is None:
            raise NotFoundError("Property")

        if not current_user.owns(property_obj.seller_id):
            raise ForbiddenError(f"Forbidden: You can only {action} your own properties")

        return property_obj

    @staticmethod
    def _check_transition(current: PropertyStatus, requested: PropertyStatus, user: User) -> None:
        if requested == PropertyStatus.ARCHIVED:
            raise PropertyStatusError("Use the delete endpoint to archive a property")

        if requested == PropertyStatus.ACTIVE and not user.is_admin:
            raise PropertyStatusError("Only administrators can activate properties")

        if requested not in STATUS_TRANSITIONS[current]:
            raise PropertyStatusError(
                f"Cannot change property status from {current.value} to {requested.value}"
            )

    @staticmethod
    def _validation_fields(property_obj: Property) -> Dict[str, Any]:
        return {
            "price": property_obj.price,
            "description": property_obj.description,
            "latitude": property_obj.latitude,
            "longitude": property_obj.longitude,
        }

    async def _record_view(self, property_id: uuid.UUID, viewer_id: uuid.UUID) -> None:
        try:
            await self.property_repo.increment_views(property_id)
        except Exception as e:
            logger.warning(f"Failed to count view of property {property_id}: {e}")
            return

        await self._record_event(AnalyticsEventType.PROPERTY_VIEWED, property_id, viewer_id)

    async def _record_event(
        self,
        event_type: AnalyticsEventType,
        property_id: Optional[uuid.UUID],
        user_id: Optional[uuid.UUID],
        details: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Analytics events are best effort and never fail the request."""
        try:
            await self.event_repo.record(event_type, property_id, user_id, details)
            return True
        except Exception as e:
            logger.warning(f"Failed to record {event_type.value} event: {e}")
            return False

    async def _after_mutation(
        self,
        property_id: uuid.UUID,
        actor_id: uuid.UUID,
        action: str,
        details: Dict[str, Any]
    ) -> None:
        await self.audit.log(actor_id, action, "property", property_id, details)

    async def _fresh(self, property_id: uuid.UUID) -> Property:
        """
        Re-read the listing so a rollback in a best-effort write cannot leave
        expired attributes behind.
        """
        refreshed = await self.property_repo.reload(property_id)
        if refreshed is None:
            raise PropertyNotFoundError()
        return refreshed

    async def _delete_stored(self, key: str) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete stored image {key}: {e}")
