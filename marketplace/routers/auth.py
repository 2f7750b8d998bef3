"""
Authentication API endpoints for registration, login, token management, and user information.
Provides JWT-based authentication with role-based permission scopes.
"""

from fastapi import APIRouter, Depends, status
from marketplace.models.user import User
from marketplace.services.auth import AuthService
from marketplace.schemas.user import UserCreate, UserResponse
from marketplace.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    CurrentUserResponse,
    MessageResponse
)
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import get_auth_service, get_current_user
from marketplace.utils.permissions import get_permissions
from marketplace.config import settings


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _current_user_response(user: User) -> CurrentUserResponse:
    return CurrentUserResponse.model_validate({
        **user.to_dict(),
        "permissions": sorted(get_permissions(user)),
    })


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register account",
    description="Create a buyer, seller, agent or developer account",
    responses=get_error_responses(400, 403)
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    """
    Register a new account.

    Seller and agent accounts start unverified; an administrator verifies
    them before the seller portal accepts their requests.
    """
    user = await auth_service.register(user_data)
    return UserResponse.model_validate(user.to_dict())


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=get_error_responses(400, 401, 403)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )

    return LoginResponse(
        user=_current_user_response(user),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses=get_error_responses(401, 403, 404)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)

    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get current authenticated user information with permission scopes",
    responses=get_error_responses(401, 403, 404)
)
async def get_current_user_info(current_user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return _current_user_response(current_user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="User logout",
    description="Tokens are stateless; clients discard them on logout",
    responses=get_error_responses(401)
)
async def logout(current_user: User = Depends(get_current_user)) -> MessageResponse:
    return MessageResponse(message="Successfully logged out")
