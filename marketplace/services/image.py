"""
Image service for handling property image uploads, storage, and management.
Validates a whole batch first, then stores and records each file in turn.
"""

import logging
from typing import List, Optional, Dict, Any
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.models.image import PropertyImage
from marketplace.models.property import Property, PropertyStatus
from marketplace.models.user import User
from marketplace.repositories.image import ImageRepository
from marketplace.repositories.property import PropertyRepository
from marketplace.services.audit import AuditLogger
from marketplace.services.property import parse_id
from marketplace.utils.file_utils import FileValidator, ValidatedImage
from marketplace.utils.storage import StorageBackend, generate_storage_key
from marketplace.utils.exceptions import (
    ValidationError,
    NotFoundError,
    UpstreamError,
    PropertyNotFoundError,
    PropertyOwnershipError
)

logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing property image uploads and storage."""

    def __init__(
        self,
        db_session: AsyncSession,
        storage: StorageBackend,
        validator: Optional[FileValidator] = None
    ):
        self.db = db_session
        self.storage = storage
        self.validator = validator or FileValidator()
        self.image_repo = ImageRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.audit = AuditLogger(db_session)

    async def upload_images(
        self,
        property_id: str,
        files: List[UploadFile],
        current_user: User
    ) -> Dict[str, Any]:
        """
        Attach uploaded images to a listing.

        Every file is validated before anything is written. Files are then
        stored and recorded one at a time; a failed record insert removes
        the object just stored and aborts the rest of the batch, while files
        recorded earlier in the batch are kept.

        Args:
            property_id: Listing id from the path
            files: Uploaded files in request order
            current_user: Caller, owner of the listing or an administrator

        Returns:
            Dictionary with the uploaded images and the listing's image URLs

        Raises:
            PropertyNotFoundError: If the listing does not exist
            PropertyOwnershipError: If the caller does not own the listing
            ValidationError: If any file is rejected
            UpstreamError: If storing or recording a file fails
        """
        property_obj = await self._get_owned_property(property_id, current_user)
        property_uuid = property_obj.id

        if not files:
            raise ValidationError("At least one image file is required")
        if len(files) > settings.max_images_per_upload:
            raise ValidationError(f"At most {settings.max_images_per_upload} images can be uploaded at once")

        validated: List[ValidatedImage] = []
        for upload in files:
            validated.append(await self.validator.validate_upload_file(upload))

        order_index = await self.image_repo.count_by_property_id(property_obj.id)
        has_primary = await self.image_repo.get_primary_image(property_obj.id) is not None

        uploaded: List[PropertyImage] = []
        for image in validated:
            key = generate_storage_key(property_uuid, image.extension)

            try:
                url = await self.storage.put(key, image.content, image.mime_type)
            except Exception as e:
                logger.error(f"Failed to store image {image.filename} for property {property_uuid}: {e}")
                raise UpstreamError("Failed to upload image")

            try:
                record = await self.image_repo.add_image({
                    "property_id": property_uuid,
                    "url": url,
                    "storage_key": key,
                    "filename": image.filename,
                    "mime_type": image.mime_type,
                    "file_size": image.file_size,
                    "width": image.width,
                    "height": image.height,
                    "is_primary": not has_primary,
                    "order_index": order_index,
                })
            except Exception as e:
                logger.error(f"Failed to record image {key} for property {property_uuid}: {e}")
                await self._discard(key)
                raise UpstreamError("Failed to save image record")

            uploaded.append(record)
            has_primary = True
            order_index += 1

        property_obj = await self.property_repo.reload(property_uuid)
        image_urls = list(property_obj.image_urls or []) + [record.url for record in uploaded]
        try:
            property_obj = await self.property_repo.update(property_obj, {"image_urls": image_urls})
        except Exception as e:
            logger.error(f"Failed to update image URLs of property {property_uuid}: {e}")
            raise UpstreamError("Failed to save image record")

        logger.info(f"Uploaded {len(uploaded)} images for property {property_obj.id}")
        result = {
            "property_id": str(property_obj.id),
            "uploaded": [
                {
                    "id": str(record.id),
                    "url": record.url,
                    "filename": record.filename,
                    "is_primary": record.is_primary,
                }
                for record in uploaded
            ],
            "image_urls": image_urls,
            "count": len(uploaded),
        }

        await self.audit.log(
            current_user.id, "images_uploaded", "property", property_obj.id,
            {"count": len(uploaded)}
        )
        return result

    async def get_property_images(self, property_id: str, current_user: Optional[User] = None) -> List[PropertyImage]:
        """Images of a listing visible to the caller, primary first."""
        parsed_id = parse_id(property_id)
        property_obj = await self.property_repo.get_by_id(parsed_id) if parsed_id else None

        if property_obj is None or property_obj.is_deleted:
            raise PropertyNotFoundError()

        if property_obj.status != PropertyStatus.ACTIVE:
            if current_user is None or not current_user.owns(property_obj.seller_id):
                raise PropertyNotFoundError()

        return await self.image_repo.get_by_property_id(property_obj.id)

    async def delete_image(self, property_id: str, image_id: str, current_user: User) -> None:
        """
        Remove one image. When the primary image goes, the next one in
        gallery order is promoted.

        Raises:
            NotFoundError: If the image does not belong to the listing
        """
        property_obj = await self._get_owned_property(property_id, current_user)
        property_uuid = property_obj.id

        parsed_image_id = parse_id(image_id)
        image = await self.image_repo.get_by_id(parsed_image_id) if parsed_image_id else None
        if image is None or image.property_id != property_uuid:
            raise NotFoundError("Image")

        was_primary = image.is_primary
        key, url = image.storage_key, image.url

        try:
            await self.image_repo.delete(image.id)

            remaining = await self.image_repo.get_by_property_id(property_uuid)
            if was_primary and remaining:
                next_image = min(remaining, key=lambda item: item.order_index)
                await self.image_repo.update_primary_status(property_uuid, next_image.id)

            property_obj = await self.property_repo.reload(property_uuid)
            await self.property_repo.update(property_obj, {
                "image_urls": [u for u in (property_obj.image_urls or []) if u != url]
            })
        except Exception as e:
            logger.error(f"Failed to delete image {image_id} of property {property_uuid}: {e}")
            raise UpstreamError("Failed to delete image")

        await self._discard(key)
        await self.audit.log(current_user.id, "image_deleted", "property", property_uuid, {"image_id": image_id})

    async def _get_owned_property(self, property_id: str, current_user: User) -> Property:
        parsed_id = parse_id(property_id)
        property_obj = await self.property_repo.get_by_id(parsed_id) if parsed_id else None

        if property_obj is None or property_obj.is_deleted:
            raise PropertyNotFoundError()

        if not current_user.owns(property_obj.seller_id):
            raise PropertyOwnershipError()

        return property_obj

    async def _discard(self, key: str) -> None:
        """Best-effort removal of a stored object."""
        try:
            await self.storage.delete(key)
        except Exception as e:
            logger.warning(f"Failed to remove stored image {key}: {e}")
