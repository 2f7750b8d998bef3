"""
API route handlers for the marketplace API.
"""

from .auth import router as auth_router
from .users import router as users_router
from .properties import router as properties_router
from .images import router as images_router
from .inquiries import router as inquiries_router
from .contact import router as contact_router
from .seller_properties import router as seller_properties_router
from .seller_inquiries import router as seller_inquiries_router
from .seller_analytics import router as seller_analytics_router
from .analytics import router as analytics_router

__all__ = [
    "auth_router",
    "users_router",
    "properties_router",
    "images_router",
    "inquiries_router",
    "contact_router",
    "seller_properties_router",
    "seller_inquiries_router",
    "seller_analytics_router",
    "analytics_router",
]
