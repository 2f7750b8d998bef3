"""
Pydantic schemas for user requests and responses.
Handles registration, profile output and administrator account updates.
"""

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from marketplace.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["seller@example.com"]
    )

    full_name: str = Field(
        ...,
        min_length=2,
        max_length=255,
        description="User's full name",
        examples=["Ama Mensah"]
    )

    phone: Optional[str] = Field(None, max_length=50, examples=["+233201234567"])

    business_name: Optional[str] = Field(
        None,
        max_length=255,
        description="Agency or business name for sellers and agents"
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()


class UserCreate(UserBase):
    """Schema for self-registration."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)",
        examples=["securepassword123"]
    )

    role: UserRole = Field(
        UserRole.BUYER,
        description="Requested role; administrators cannot self-register",
        examples=["seller"]
    )

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        """Validate password strength."""
        has_letter = any(c.isalpha() for c in v)
        has_number = any(c.isdigit() for c in v)

        if not has_letter:
            raise ValueError("Password must contain at least one letter")

        if not has_number:
            raise ValueError("Password must contain at least one number")

        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "seller@example.com",
            "full_name": "Ama Mensah",
            "password": "securepassword123",
            "role": "seller",
            "business_name": "Mensah Homes"
        }
    })


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str = Field(..., description="User's unique identifier")
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    business_name: Optional[str] = None
    role: UserRole
    is_verified: bool = Field(..., description="Whether an administrator verified the account")
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    """Owner summary embedded in listings."""

    id: str
    full_name: str
    business_name: Optional[str] = None
    role: UserRole
    is_verified: bool


class VerificationUpdate(BaseModel):
    is_verified: bool = Field(..., description="New verification flag")


class StatusUpdate(BaseModel):
    is_active: bool = Field(..., description="New active flag")
