"""
PropertyImage model for uploaded listing photos.
Stores the storage key, public URL and ordering metadata of each image.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from marketplace.models.property import Property


class PropertyImage(Base):
    """
    Image attached to exactly one property.
    One image per property carries ``is_primary``; the first uploaded image wins.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Public URL served by the storage backend"
    )

    storage_key: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        unique=True,
        comment="Object key inside the storage backend"
    )

    filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Original filename of the uploaded image"
    )

    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    file_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="File size in bytes"
    )

    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    alt_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the primary image for the property"
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Position in the property gallery"
    )

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images",
        lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, key={self.storage_key})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "url": self.url,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "width": self.width,
            "height": self.height,
            "alt_text": self.alt_text,
            "is_primary": self.is_primary,
            "order_index": self.order_index,
            "created_at": self.created_at.isoformat(),
        }


# Gallery ordering lookups
property_images_order_index = Index(
    "idx_property_images_order",
    PropertyImage.property_id,
    PropertyImage.order_index
)
