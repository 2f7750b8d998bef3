"""
Pydantic schemas for property requests and responses.
Handles property CRUD operations, search filters, and validation.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime
from decimal import Decimal
from marketplace.config import settings
from marketplace.models.property import PropertyType, ListingType, PropertyStatus
from marketplace.schemas.user import UserSummary
from marketplace.schemas.image import PropertyImageResponse


def _clean_text(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError(f"{label} cannot be empty")
    return value.strip()


def _check_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) < 10:
        raise ValueError("Description must be at least 10 characters")
    if len(value) > 5000:
        raise ValueError("Description must be at most 5000 characters")
    return value


def _check_price(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return value
    if value <= 0:
        raise ValueError("Price must be greater than 0")
    if value > Decimal('999999999999.99'):
        raise ValueError("Price exceeds maximum allowed value")
    return value


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    title: str = Field(
        ...,
        max_length=255,
        description="Property listing title",
        examples=["Spacious 3 bedroom house in East Legon"]
    )

    description: str = Field(
        ...,
        description="Detailed property description (10 to 5000 characters)",
        examples=["Newly built house with a garden, borehole and a two-car garage."]
    )

    price: Decimal = Field(..., description="Asking price", examples=[850000])

    currency: str = Field(settings.default_currency, min_length=3, max_length=3, description="ISO currency code")

    property_type: PropertyType = Field(..., examples=["house"])

    listing_type: ListingType = Field(..., examples=["for_sale"])

    bedrooms: int = Field(1, ge=0, le=100)
    bathrooms: int = Field(1, ge=0, le=100)
    square_feet: Optional[int] = Field(None, gt=0, description="Floor or plot area in square feet")

    address: str = Field(..., max_length=500, examples=["12 Boundary Road"])
    city: str = Field(..., max_length=100, examples=["Accra"])
    region: str = Field(settings.default_region, max_length=100)
    country: str = Field(settings.default_country, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)

    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)

    features: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    is_featured: bool = False

    status: Optional[Literal["draft", "pending"]] = Field(
        None,
        description="Save as draft; listings otherwise start pending review"
    )

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        """Validate and clean title."""
        return _clean_text(v, "Title")

    @field_validator('address', 'city')
    @classmethod
    def validate_location_text(cls, v, info):
        return _clean_text(v, info.field_name.capitalize())

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return _check_description(v)

    @field_validator('price')
    @classmethod
    def validate_price(cls, v):
        """Validate price value."""
        return _check_price(v)

    @model_validator(mode='after')
    def validate_coordinates(self):
        """Validate that both coordinates are provided together or both are None."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Both latitude and longitude must be provided together, or both must be None")
        return self


class PropertyUpdate(BaseModel):
    """
    Schema for a partial property update.

    Only the keys present in the request are applied; a change to any field
    other than status sends an active listing back to pending.
    """

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=100)
    bathrooms: Optional[int] = Field(None, ge=0, le=100)
    square_feet: Optional[int] = Field(None, gt=0)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    features: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    status: Optional[PropertyStatus] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _clean_text(v, "Title")

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return _check_description(v)

    @field_validator('price')
    @classmethod
    def validate_price(cls, v):
        return _check_price(v)


class SoftDeleteRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Why the listing was removed")
    permanent: bool = Field(False, description="Delete the listing and everything attached to it")


class PropertyResponse(BaseModel):
    """Schema for property response data."""

    id: str
    title: str
    description: str
    property_type: PropertyType
    listing_type: ListingType
    price: float
    currency: str
    bedrooms: int
    bathrooms: int
    square_feet: Optional[int] = None
    address: str
    city: str
    region: str
    country: str
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    features: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    is_featured: bool
    views_count: int
    status: PropertyStatus
    deleted_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    archived_by: Optional[str] = None
    seller_id: str
    created_at: datetime
    updated_at: datetime

    owner: Optional[UserSummary] = None
    images: Optional[List[PropertyImageResponse]] = None
    inquiries: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Included for the owner and administrators only"
    )

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse] = Field(..., description="List of properties")
    total: int = Field(..., description="Total number of properties matching the criteria")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Number of properties per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether there are more pages")
    has_previous: bool = Field(..., description="Whether there are previous pages")


class FavoriteResponse(BaseModel):
    property_id: str
    is_favorite: bool


class DeletionResponse(BaseModel):
    """Result of a soft or permanent delete."""

    message: str
    id: str
    deleted_at: datetime
    permanent: bool
