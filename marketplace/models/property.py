"""
Property model for sale, rent and short-let listings.
Handles listing data, lifecycle status, soft-delete markers and ownership.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, DateTime, JSON, Uuid,
    Enum as SQLEnum, Index, ForeignKey
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.user import User
    from marketplace.models.image import PropertyImage


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    LAND = "land"
    COMMERCIAL = "commercial"


class ListingType(str, enum.Enum):
    """How the property is offered."""
    FOR_SALE = "for_sale"
    FOR_RENT = "for_rent"
    SHORT_LET = "short_let"


class PropertyStatus(str, enum.Enum):
    """Listing lifecycle status."""
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"
    RENTED = "rented"
    ARCHIVED = "archived"


class Property(Base):
    """
    Property listing owned by exactly one seller or agent.
    Active listings that are edited go back to pending for re-review.
    """

    __tablename__ = "properties"

    # Basic listing information
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType),
        nullable=False,
        index=True,
        comment="House, apartment, land or commercial"
    )

    listing_type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType),
        nullable=False,
        index=True,
        comment="For sale, for rent or short let"
    )

    # Pricing information
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Asking price"
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="GHS",
        comment="ISO currency code"
    )

    # Specifications
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    square_feet: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Floor or plot area in square feet"
    )

    # Location information
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(100), nullable=False, default="Greater Accra")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="Ghana")
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    latitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=8),
        nullable=True,
        comment="Property latitude coordinate"
    )

    longitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=11, scale=8),
        nullable=True,
        comment="Property longitude coordinate"
    )

    # Feature lists
    features: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    image_urls: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Public URLs of uploaded images in upload order"
    )

    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    views_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of authenticated detail views"
    )

    # Lifecycle
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.PENDING,
        index=True,
        comment="Listing lifecycle status"
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Soft-delete marker"
    )

    deletion_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    archived_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        comment="User who archived the listing"
    )

    # Ownership
    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the seller or agent who owns this property"
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", lazy="selectin")

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.order_index"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}..., status={self.status})>"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def validate_price(self) -> None:
        """
        Validate property price.

        Raises:
            ValueError: If price is invalid
        """
        if self.price is None or self.price <= 0:
            raise ValueError("Property price must be greater than 0")

        if self.price > Decimal("999999999999.99"):
            raise ValueError("Property price exceeds maximum allowed value")

    def validate_coordinates(self) -> None:
        """
        Validate latitude and longitude coordinates.

        Raises:
            ValueError: If coordinates are invalid
        """
        if self.latitude is not None and not (-90 <= self.latitude <= 90):
            raise ValueError("Latitude must be between -90 and 90 degrees")

        if self.longitude is not None and not (-180 <= self.longitude <= 180):
            raise ValueError("Longitude must be between -180 and 180 degrees")

    def validate_all(self) -> None:
        self.validate_price()
        self.validate_coordinates()
        if self.description is None or len(self.description.strip()) < 10:
            raise ValueError("Description must be at least 10 characters")

    def to_dict(self, include_owner: bool = False, include_images: bool = False) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_owner: Whether to include owner information
            include_images: Whether to include image information

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "property_type": self.property_type.value,
            "listing_type": self.listing_type.value,
            "price": float(self.price),
            "currency": self.currency,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_feet": self.square_feet,
            "address": self.address,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "zip_code": self.zip_code,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "features": list(self.features or []),
            "amenities": list(self.amenities or []),
            "image_urls": list(self.image_urls or []),
            "is_featured": self.is_featured,
            "views_count": self.views_count,
            "status": self.status.value,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "archived_at": self.archived_at.isoformat() if self.archived_at else None,
            "archived_by": str(self.archived_by) if self.archived_by else None,
            "seller_id": str(self.seller_id),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if include_owner and self.owner:
            result["owner"] = self.owner.to_public_dict()

        if include_images:
            result["images"] = [image.to_dict() for image in self.images]

        return result


# Composite index for public search (city, type and price)
search_index = Index(
    "idx_properties_search",
    Property.city,
    Property.property_type,
    Property.price,
    Property.status
)

# Composite index for a seller's dashboard
seller_status_index = Index(
    "idx_properties_seller_status",
    Property.seller_id,
    Property.status,
    Property.updated_at.desc()
)
