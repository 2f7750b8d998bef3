"""
Inquiry model for buyer messages sent to a listing's seller.
Tracks the seller response workflow, priority and closing of conversations.
"""

from sqlalchemy import (
    String, Text, Numeric, DateTime, JSON, Uuid, Enum as SQLEnum, ForeignKey, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.property import Property


class InquiryStatus(str, enum.Enum):
    NEW = "new"
    RESPONDED = "responded"
    CLOSED = "closed"
    EXPIRED = "expired"


class InquiryPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class InquiryType(str, enum.Enum):
    GENERAL = "general"
    VIEWING = "viewing"
    PRICE = "price"
    DETAILS = "details"


class ResponseType(str, enum.Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"
    MORE_INFO = "more_info"
    COUNTER_OFFER = "counter_offer"


class ContactMethod(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"
    WHATSAPP = "whatsapp"


# Statuses that block the single-response endpoint
ANSWERED_STATUSES = (InquiryStatus.RESPONDED, InquiryStatus.CLOSED)

# Sort weight used when ordering by priority
PRIORITY_RANK = {
    InquiryPriority.LOW: 0,
    InquiryPriority.MEDIUM: 1,
    InquiryPriority.HIGH: 2,
    InquiryPriority.URGENT: 3,
}


class Inquiry(Base):
    """
    Buyer inquiry against a single property.
    Only the property's owner reads or mutates it; it is closed, never deleted, by the seller.
    """

    __tablename__ = "inquiries"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    buyer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Set when the buyer was signed in"
    )

    # Buyer contact details
    buyer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    buyer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    buyer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    inquiry_type: Mapped[InquiryType] = mapped_column(
        SQLEnum(InquiryType), nullable=False, default=InquiryType.GENERAL
    )
    preferred_contact: Mapped[ContactMethod] = mapped_column(
        SQLEnum(ContactMethod), nullable=False, default=ContactMethod.EMAIL
    )

    status: Mapped[InquiryStatus] = mapped_column(
        SQLEnum(InquiryStatus),
        nullable=False,
        default=InquiryStatus.NEW,
        index=True
    )

    priority: Mapped[InquiryPriority] = mapped_column(
        SQLEnum(InquiryPriority),
        nullable=False,
        default=InquiryPriority.MEDIUM,
        index=True
    )

    # Seller response
    response_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_type: Mapped[Optional[ResponseType]] = mapped_column(SQLEnum(ResponseType), nullable=True)
    counter_offer_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=14, scale=2), nullable=True)
    available_times: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    contact_preference: Mapped[Optional[ContactMethod]] = mapped_column(SQLEnum(ContactMethod), nullable=True)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
        comment="Private seller notes"
    )

    # Request metadata
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    property_rel: Mapped["Property"] = relationship("Property", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Inquiry(id={self.id}, property_id={self.property_id}, status={self.status})>"

    @property
    def has_response(self) -> bool:
        return self.status in ANSWERED_STATUSES

    def to_dict(self, include_property: bool = False) -> dict:
        result = {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "buyer_id": str(self.buyer_id) if self.buyer_id else None,
            "buyer_name": self.buyer_name,
            "buyer_email": self.buyer_email,
            "buyer_phone": self.buyer_phone,
            "message": self.message,
            "inquiry_type": self.inquiry_type.value,
            "preferred_contact": self.preferred_contact.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "response_message": self.response_message,
            "response_type": self.response_type.value if self.response_type else None,
            "counter_offer_price": float(self.counter_offer_price) if self.counter_offer_price is not None else None,
            "available_times": list(self.available_times or []),
            "contact_preference": self.contact_preference.value if self.contact_preference else None,
            "responded_at": self.responded_at.isoformat() if self.responded_at else None,
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if include_property and self.property_rel:
            result["property"] = {
                "id": str(self.property_rel.id),
                "title": self.property_rel.title,
                "price": float(self.property_rel.price),
                "currency": self.property_rel.currency,
            }

        return result


inquiries_property_status_index = Index(
    "idx_inquiries_property_status",
    Inquiry.property_id,
    Inquiry.status,
    Inquiry.created_at.desc()
)
