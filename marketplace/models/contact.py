"""
Contact form submissions sent to the marketplace team rather than a seller.
"""

from sqlalchemy import String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from marketplace.database import Base
from typing import Optional
import enum


class ContactPreference(str, enum.Enum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class ContactStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class ContactMessage(Base):
    """General enquiry from the public contact form."""

    __tablename__ = "contact_submissions"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    property_interest: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Free text: listing title, area or property type"
    )

    preferred_contact: Mapped[ContactPreference] = mapped_column(
        SQLEnum(ContactPreference), nullable=False, default=ContactPreference.EMAIL
    )

    status: Mapped[ContactStatus] = mapped_column(
        SQLEnum(ContactStatus), nullable=False, default=ContactStatus.NEW, index=True
    )

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<ContactMessage(id={self.id}, email={self.email}, status={self.status})>"
