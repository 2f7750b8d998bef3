"""
Administrator account management endpoints.
"""

from fastapi import APIRouter, Depends, status
from marketplace.models.user import User
from marketplace.services.auth import AuthService
from marketplace.services.property import parse_id
from marketplace.schemas.user import UserResponse, VerificationUpdate, StatusUpdate
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import get_auth_service, get_current_admin_user
from marketplace.utils.exceptions import NotFoundError


router = APIRouter(prefix="/users", tags=["Users"])


def _user_id(user_id: str):
    parsed = parse_id(user_id)
    if parsed is None:
        raise NotFoundError("User")
    return parsed


@router.patch(
    "/{user_id}/verification",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify seller account",
    description="Set or clear the verification flag that opens the seller portal (admin only)",
    responses=get_error_responses(401, 403, 404)
)
async def update_verification(
    user_id: str,
    update: VerificationUpdate,
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.set_verification(_user_id(user_id), update.is_verified, current_user)
    return UserResponse.model_validate(user.to_dict())


@router.patch(
    "/{user_id}/status",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Activate or deactivate account",
    description="Inactive accounts cannot authenticate (admin only)",
    responses=get_error_responses(401, 403, 404)
)
async def update_status(
    user_id: str,
    update: StatusUpdate,
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_user_status(_user_id(user_id), update.is_active, current_user)
    return UserResponse.model_validate(user.to_dict())
