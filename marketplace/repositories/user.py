"""
User repository for authentication and user management operations.
Provides secure user operations with password handling and role-based access.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from marketplace.repositories.base import BaseRepository
from marketplace.models.user import User, UserRole
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and authorization support.
    Handles secure user operations and role-based access control.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password, full_name
                      Optional: role (defaults to BUYER), phone, business_name

        Returns:
            Created user instance

        Raises:
            ValueError: If validation fails or the email is taken
            Exception: If database operation fails
        """
        try:
            email = User.validate_email_format(user_data["email"])

            if await self.get_by_email(email):
                raise ValueError(f"User with email {email} already exists")

            data = dict(user_data)
            password = data.pop("password")

            create_data = {
                **data,
                "email": email,
                "hashed_password": User.hash_password(password),
                "role": data.get("role", UserRole.BUYER),
                "is_verified": data.get("is_verified", False),
                "is_active": data.get("is_active", True)
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.is_active:
            logger.debug(f"Authentication failed: user {email} is inactive")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def set_verified(self, user_id: uuid.UUID, is_verified: bool) -> Optional[User]:
        """Flip the administrator verification flag."""
        user = await self.get_by_id(user_id)
        if not user:
            return None

        updated_user = await self.update(user, {"is_verified": is_verified})
        logger.info(f"User {updated_user.email} verification set to {is_verified}")
        return updated_user

    async def update_user_status(self, user_id: uuid.UUID, is_active: bool) -> Optional[User]:
        """
        Update user's active status.

        Args:
            user_id: UUID of the user
            is_active: New active status

        Returns:
            Updated user instance or None if not found
        """
        user = await self.get_by_id(user_id)
        if not user:
            return None

        updated_user = await self.update(user, {"is_active": is_active})
        status = "activated" if is_active else "deactivated"
        logger.info(f"User {updated_user.email} {status}")
        return updated_user
