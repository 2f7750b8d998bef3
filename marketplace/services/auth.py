"""
Authentication service for registration, login, token management and account administration.
Resolves bearer tokens to profiles and enforces account state rules.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.user import UserRepository
from marketplace.models.user import User, UserRole
from marketplace.schemas.user import UserCreate
from marketplace.services.audit import AuditLogger
from marketplace.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token
)
from marketplace.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    UpstreamError,
    ProfileNotFoundError
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)

# Roles open to self-registration
REGISTRATION_ROLES = (UserRole.BUYER, UserRole.SELLER, UserRole.AGENT, UserRole.DEVELOPER)


class AuthService:
    """
    Authentication service for managing user authentication and account state.
    Handles user authentication flows, token management, and administrator account updates.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.audit = AuditLogger(db_session)

    async def register(self, user_data: UserCreate) -> User:
        """
        Register a new account.

        Sellers and agents start unverified and need administrator verification
        before the seller portal opens to them.

        Raises:
            ForbiddenError: If the admin role is requested
            ValidationError: If the email is taken or invalid
        """
        if user_data.role not in REGISTRATION_ROLES:
            raise ForbiddenError("Administrator accounts cannot be self-registered")

        try:
            user = await self.user_repo.create_user({
                **user_data.model_dump(),
                "is_verified": False,
            })
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to register user {user_data.email}: {e}")
            raise UpstreamError("Failed to create user")

        logger.info(f"User registered: {user.email} as {user.role.value}")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        if not password or not password.strip():
            raise ValidationError("Password is required")

        user = await self.user_repo.get_by_email(email)

        if not user or not user.verify_password(password):
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise InactiveUserError()

        logger.info(f"User authenticated successfully: {user.email}")
        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role
        )

        refresh_token = create_refresh_token(
            user_id=user.id,
            email=user.email
        )

        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        user_id = user.id
        access_token, refresh_token = self.create_tokens(user)
        await self.audit.log(user_id, "user_login", "user", user_id)

        return await self.user_repo.reload(user_id), access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            ProfileNotFoundError: If the user no longer exists
            InactiveUserError: If user account is inactive
        """
        user = await self._resolve_token(refresh_token, "refresh")

        return create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role
        )

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenError: If token is invalid
            TokenExpiredError: If token is expired
            ProfileNotFoundError: If the token is valid but no profile exists
            InactiveUserError: If user account is inactive
        """
        return await self._resolve_token(token, "access")

    async def _resolve_token(self, token: str, token_type: str) -> User:
        try:
            token_payload = verify_token(token, token_type=token_type)
            user_id = uuid.UUID(token_payload.user_id)
        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError()
        except ValueError:
            raise InvalidTokenError()

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise ProfileNotFoundError()

        if not user.is_active:
            raise InactiveUserError()

        return user

    async def set_verification(self, user_id: uuid.UUID, is_verified: bool, current_user: User) -> User:
        """
        Set the verification flag of an account (administrators only).

        Raises:
            NotFoundError: If user doesn't exist
        """
        try:
            user = await self.user_repo.set_verified(user_id, is_verified)
            if not user:
                raise NotFoundError("User")
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update verification for user {user_id}: {e}")
            raise UpstreamError("Failed to update user")

        await self.audit.log(
            current_user.id, "user_verification_updated", "user", user_id,
            {"is_verified": is_verified}
        )
        return await self.user_repo.reload(user_id)

    async def update_user_status(
        self,
        user_id: uuid.UUID,
        is_active: bool,
        current_user: User
    ) -> User:
        """
        Update user active status.

        Raises:
            NotFoundError: If user doesn't exist
            ForbiddenError: If an administrator tries to deactivate themselves
        """
        actor_id = current_user.id
        if user_id == actor_id and not is_active:
            raise ForbiddenError("Users cannot deactivate their own account")

        try:
            user = await self.user_repo.update_user_status(user_id, is_active)
            if not user:
                raise NotFoundError("User")
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update user status {user_id}: {e}")
            raise UpstreamError("Failed to update user")

        await self.audit.log(
            actor_id, "user_status_updated", "user", user_id,
            {"is_active": is_active}
        )
        return await self.user_repo.reload(user_id)
