"""
Service layer for business logic implementation.
Covers authentication, listings, images, inquiries, the contact form, analytics, auditing and error formatting.
"""

from .auth import AuthService
from .property import PropertyService
from .image import ImageService
from .inquiry import InquiryService
from .contact import ContactService
from .analytics import AnalyticsService
from .audit import AuditLogger
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "ImageService",
    "InquiryService",
    "ContactService",
    "AnalyticsService",
    "AuditLogger",
    "ErrorHandlerService"
]
