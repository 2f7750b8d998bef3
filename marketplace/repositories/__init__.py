"""
Repository layer for data access operations.
Each repository wraps one model; services combine them.
"""

from marketplace.repositories.base import BaseRepository
from marketplace.repositories.user import UserRepository
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.repositories.image import ImageRepository
from marketplace.repositories.inquiry import InquiryRepository
from marketplace.repositories.contact import ContactMessageRepository
from marketplace.repositories.activity import (
    AnalyticsEventRepository,
    FavoriteRepository
)

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "ImageRepository",
    "InquiryRepository",
    "ContactMessageRepository",
    "AnalyticsEventRepository",
    "FavoriteRepository"
]
