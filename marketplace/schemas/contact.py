"""
Pydantic schemas for the public contact form.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from marketplace.models.contact import ContactPreference


class ContactCreate(BaseModel):
    """Contact form body. Field minimums match the form's client-side rules."""

    name: str = Field(..., max_length=255, examples=["Efua Owusu"])
    email: EmailStr = Field(..., examples=["efua@example.com"])
    phone: Optional[str] = Field(None, max_length=50)
    subject: str = Field(..., max_length=255)
    message: str = Field(..., max_length=5000)
    property_interest: Optional[str] = Field(None, max_length=255)
    preferred_contact: ContactPreference = ContactPreference.EMAIL

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Phone number must be at least 10 characters")
        return v

    @field_validator('subject')
    @classmethod
    def validate_subject(cls, v):
        v = v.strip()
        if len(v) < 5:
            raise ValueError("Subject must be at least 5 characters")
        return v

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Message must be at least 10 characters")
        return v


class ContactSubmittedResponse(BaseModel):
    submission_id: str
    message: str = "Contact form submitted successfully. We will get back to you soon."
