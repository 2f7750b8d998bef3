"""
Pydantic schemas for authentication requests and responses.
Handles login, token refresh, and current-user data.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List
from marketplace.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["seller@example.com"]
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)",
        examples=["securepassword123"]
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(
        ...,
        description="Access token expiration time in seconds",
        examples=[1800]
    )


class CurrentUserResponse(UserResponse):
    """Current user with the permission scopes of their role."""

    permissions: List[str] = Field(
        default_factory=list,
        description="Permission scopes granted to the user's role",
        examples=[["read:own_properties", "create:properties"]]
    )


class LoginResponse(BaseModel):
    """Complete login response schema."""

    user: CurrentUserResponse = Field(..., description="Authenticated user information")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds")


class MessageResponse(BaseModel):
    message: str
