"""
Pydantic schemas for inquiry submission and the seller response workflow.
"""

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
from decimal import Decimal
from marketplace.models.inquiry import (
    InquiryStatus,
    InquiryPriority,
    InquiryType,
    ResponseType,
    ContactMethod,
)


class InquiryCreate(BaseModel):
    """Public inquiry about a listing."""

    property_id: str = Field(..., description="Listing the inquiry is about")
    buyer_name: str = Field(..., max_length=255, examples=["Kwame Asante"])
    buyer_email: EmailStr = Field(..., examples=["kwame@example.com"])
    buyer_phone: Optional[str] = Field(None, max_length=50)
    message: str = Field(..., description="At least 10 characters")
    inquiry_type: InquiryType = InquiryType.GENERAL
    preferred_contact: ContactMethod = ContactMethod.EMAIL

    @field_validator('buyer_name')
    @classmethod
    def validate_buyer_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Buyer name cannot be empty")
        return v.strip()

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Message must be at least 10 characters")
        if len(v) > 5000:
            raise ValueError("Message must be at most 5000 characters")
        return v


class InquiryResponseFields(BaseModel):
    """Seller response fields shared by respond and update."""

    response_message: Optional[str] = Field(None, max_length=5000)
    response_type: Optional[ResponseType] = None
    counter_offer_price: Optional[Decimal] = Field(None, gt=0)
    available_times: Optional[List[str]] = None
    contact_preference: Optional[ContactMethod] = None


class InquiryRespondRequest(InquiryResponseFields):
    """Single response to a new inquiry."""

    inquiry_id: str
    response_message: str = Field(..., min_length=1, max_length=5000)


class InquiryUpdate(InquiryResponseFields):
    """Partial update; unlike respond, this may overwrite an earlier response."""

    status: Optional[InquiryStatus] = None
    priority: Optional[InquiryPriority] = None
    notes: Optional[str] = Field(None, max_length=1000)


class BulkInquiryData(BaseModel):
    status: Optional[InquiryStatus] = None
    priority: Optional[InquiryPriority] = None


class BulkInquiryRequest(BaseModel):
    action: Literal["update_status", "mark_priority", "archive"]
    inquiry_ids: List[str] = Field(..., min_length=1, max_length=100)
    data: BulkInquiryData = Field(default_factory=BulkInquiryData)


class BulkItemResult(BaseModel):
    id: str
    status: str


class BulkItemError(BaseModel):
    id: str
    error: str


class BulkSummary(BaseModel):
    total: int
    successful: int
    failed: int


class BulkInquiryResponse(BaseModel):
    results: List[BulkItemResult]
    errors: List[BulkItemError]
    summary: BulkSummary


class InquiryResponse(BaseModel):
    id: str
    property_id: str
    buyer_id: Optional[str] = None
    buyer_name: str
    buyer_email: str
    buyer_phone: Optional[str] = None
    message: str
    inquiry_type: InquiryType
    preferred_contact: ContactMethod
    status: InquiryStatus
    priority: InquiryPriority
    response_message: Optional[str] = None
    response_type: Optional[ResponseType] = None
    counter_offer_price: Optional[float] = None
    available_times: List[str] = Field(default_factory=list)
    contact_preference: Optional[ContactMethod] = None
    responded_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    property: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class InquirySubmittedResponse(BaseModel):
    id: str
    property_id: str
    status: InquiryStatus
    created_at: datetime
    message: str = "Inquiry submitted successfully"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class InquiryListResponse(BaseModel):
    inquiries: List[InquiryResponse]
    pagination: Pagination
