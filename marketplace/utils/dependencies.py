"""
FastAPI dependency injection utilities for authentication and services.
Provides reusable dependencies for route protection, seller scopes and caller identity.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.database import get_db
from marketplace.models.user import User, UserRole
from marketplace.services.auth import AuthService
from marketplace.services.property import PropertyService
from marketplace.services.image import ImageService
from marketplace.services.inquiry import InquiryService
from marketplace.services.contact import ContactService
from marketplace.services.analytics import AnalyticsService
from marketplace.utils.permissions import SELLER_PORTAL_ROLES, has_permissions
from marketplace.utils.storage import StorageBackend, get_storage
from marketplace.utils.exceptions import (
    APIException,
    UnauthorizedError,
    ForbiddenError,
    InsufficientPermissionsError
)
import logging

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage)
) -> PropertyService:
    """
    Get property service instance.

    The storage backend is needed to remove image files on hard delete.
    """
    return PropertyService(db, storage)


async def get_image_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage)
) -> ImageService:
    return ImageService(db, storage)


async def get_inquiry_service(db: AsyncSession = Depends(get_db)) -> InquiryService:
    return InquiryService(db)


async def get_contact_service(db: AsyncSession = Depends(get_db)) -> ContactService:
    return ContactService(db)


async def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token is provided or the token is invalid or expired
        ProfileNotFoundError: If the token's user no longer exists
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Get current user with admin role.

    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError()

    return current_user


def require_seller(*scopes: str):
    """
    Create a dependency for seller-portal routes.

    The caller must be a seller, agent or administrator, sellers and agents
    must be verified, and the caller's role must grant every listed scope.

    Args:
        scopes: Permission scopes required by the route

    Returns:
        Dependency function
    """
    async def seller_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in SELLER_PORTAL_ROLES:
            logger.warning(f"User {current_user.id} with role {current_user.role.value} denied seller access")
            raise InsufficientPermissionsError()

        if not current_user.is_admin and not current_user.is_verified:
            raise ForbiddenError("Seller account is not verified")

        if not has_permissions(current_user, scopes):
            logger.warning(f"User {current_user.id} lacks scopes {sorted(scopes)}")
            raise InsufficientPermissionsError()

        return current_user

    return seller_dependency


# Optional authentication dependency (for public endpoints that can benefit from user context)
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if token is provided and valid, otherwise return None.

    Args:
        credentials: HTTP Bearer credentials (optional)
        auth_service: Authentication service

    Returns:
        User object if authenticated, None otherwise
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException as e:
        # Public endpoints fall back to anonymous access
        logger.debug(f"Ignoring unusable token on public endpoint: {e.detail}")
        return None
