"""
Property image endpoints: multi-file upload, gallery listing and removal.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from typing import List, Optional

from marketplace.models.user import User
from marketplace.services.image import ImageService
from marketplace.schemas.image import (
    PropertyImageResponse,
    PropertyImageListResponse,
    ImageUploadResponse
)
from marketplace.schemas.auth import MessageResponse
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_image_service
)


router = APIRouter(prefix="/properties/{property_id}/images", tags=["Images"])


@router.post(
    "/upload",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload property images",
    description=(
        "Upload one or more images in repeated `file` form fields. "
        "Every file is validated before any is stored."
    ),
    responses=get_error_responses(400, 401, 403, 404, 500)
)
async def upload_images(
    property_id: str,
    file: List[UploadFile] = File(..., description="JPEG, PNG, WebP or AVIF images up to 5MB each"),
    current_user: User = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    """
    Attach images to a listing.

    The first image of a listing without a primary image becomes primary.

    Raises:
        PropertyNotFoundError: If the listing does not exist
        PropertyOwnershipError: If the caller does not own the listing
        ValidationError: If a file has the wrong type or size or is not an image
        UpstreamError: If storing or recording a file fails
    """
    result = await image_service.upload_images(property_id, file, current_user)
    return ImageUploadResponse.model_validate(result)


@router.get(
    "",
    response_model=PropertyImageListResponse,
    status_code=status.HTTP_200_OK,
    summary="List property images",
    responses=get_error_responses(404)
)
async def list_images(
    property_id: str,
    current_user: Optional[User] = Depends(get_optional_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageListResponse:
    images = await image_service.get_property_images(property_id, current_user)

    return PropertyImageListResponse(
        property_id=property_id,
        images=[PropertyImageResponse.model_validate(image.to_dict()) for image in images],
        total=len(images)
    )


@router.delete(
    "/{image_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete property image",
    description="Remove one image; the next image becomes primary when the primary is removed",
    responses=get_error_responses(401, 403, 404, 500)
)
async def delete_image(
    property_id: str,
    image_id: str,
    current_user: User = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> MessageResponse:
    await image_service.delete_image(property_id, image_id, current_user)
    return MessageResponse(message="Image deleted successfully")
