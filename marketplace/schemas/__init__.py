"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    CurrentUserResponse,
    LoginResponse,
    MessageResponse
)

# User schemas
from .user import (
    UserBase,
    UserCreate,
    UserResponse,
    UserSummary,
    VerificationUpdate,
    StatusUpdate
)

# Property schemas
from .property import (
    PropertyCreate,
    PropertyUpdate,
    SoftDeleteRequest,
    DeletionResponse,
    PropertyResponse,
    PropertyListResponse,
    FavoriteResponse
)

# Image schemas
from .image import (
    PropertyImageResponse,
    PropertyImageListResponse,
    ImageUploadResponse
)

# Inquiry schemas
from .inquiry import (
    InquiryCreate,
    InquiryRespondRequest,
    InquiryUpdate,
    BulkInquiryRequest,
    BulkInquiryResponse,
    InquiryResponse,
    InquirySubmittedResponse,
    InquiryListResponse
)

# Contact schemas
from .contact import (
    ContactCreate,
    ContactSubmittedResponse
)

# Analytics schemas
from .analytics import (
    AnalyticsType,
    AnalyticsPeriod,
    AnalyticsResult,
    SellerAnalyticsResponse
)

__all__ = [
    # Authentication
    "LoginRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "CurrentUserResponse",
    "LoginResponse",
    "MessageResponse",

    # User
    "UserBase",
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "VerificationUpdate",
    "StatusUpdate",

    # Property
    "PropertyCreate",
    "PropertyUpdate",
    "SoftDeleteRequest",
    "DeletionResponse",
    "PropertyResponse",
    "PropertyListResponse",
    "FavoriteResponse",

    # Image
    "PropertyImageResponse",
    "PropertyImageListResponse",
    "ImageUploadResponse",

    # Inquiry
    "InquiryCreate",
    "InquiryRespondRequest",
    "InquiryUpdate",
    "BulkInquiryRequest",
    "BulkInquiryResponse",
    "InquiryResponse",
    "InquirySubmittedResponse",
    "InquiryListResponse",

    # Contact
    "ContactCreate",
    "ContactSubmittedResponse",

    # Analytics
    "AnalyticsType",
    "AnalyticsPeriod",
    "AnalyticsResult",
    "SellerAnalyticsResponse"
]
