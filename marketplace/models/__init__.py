"""
Database models for the marketplace API.
Includes users, properties, images, inquiries, contact messages and activity records.
"""

from marketplace.models.user import User, UserRole
from marketplace.models.property import Property, PropertyType, ListingType, PropertyStatus
from marketplace.models.image import PropertyImage
from marketplace.models.inquiry import (
    Inquiry,
    InquiryStatus,
    InquiryPriority,
    InquiryType,
    ResponseType,
    ContactMethod,
)
from marketplace.models.activity import AuditLog, AnalyticsEvent, AnalyticsEventType, PropertyFavorite
from marketplace.models.contact import ContactMessage, ContactPreference, ContactStatus

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "ListingType",
    "PropertyStatus",
    "PropertyImage",
    "Inquiry",
    "InquiryStatus",
    "InquiryPriority",
    "InquiryType",
    "ResponseType",
    "ContactMethod",
    "AuditLog",
    "AnalyticsEvent",
    "AnalyticsEventType",
    "PropertyFavorite",
    "ContactMessage",
    "ContactPreference",
    "ContactStatus",
]
