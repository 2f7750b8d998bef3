"""
Pydantic schemas for property image responses.
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class PropertyImageResponse(BaseModel):
    """Schema for property image response data."""

    id: str = Field(..., description="Image unique identifier")
    property_id: str
    url: str = Field(..., description="Public URL of the stored image")
    filename: str = Field(..., description="Original filename")
    mime_type: str
    file_size: int = Field(..., description="File size in bytes")
    width: Optional[int] = None
    height: Optional[int] = None
    alt_text: Optional[str] = None
    is_primary: bool = Field(..., description="Whether this is the primary image for the property")
    order_index: int = Field(..., description="Position in the property gallery")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyImageListResponse(BaseModel):
    property_id: str
    images: List[PropertyImageResponse]
    total: int


class UploadedImage(BaseModel):
    id: str
    url: str
    filename: str
    is_primary: bool


class ImageUploadResponse(BaseModel):
    """Result of a successful multi-file upload."""

    property_id: str
    uploaded: List[UploadedImage] = Field(..., description="Images stored by this request, in upload order")
    image_urls: List[str] = Field(..., description="All image URLs of the property after the upload")
    count: int
