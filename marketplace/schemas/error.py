"""
Error response schemas for API documentation and consistent error formatting.
Every error body has the shape {"error": {code, message, timestamp, request_id, details?}}.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["message"])
    message: str = Field(..., description="Human-readable error message", examples=["Message must be at least 10 characters"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format", examples=["2024-01-01T00:00:00Z"])
    request_id: str = Field(..., description="Request identifier, also sent as X-Request-ID", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Field errors for validation failures")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse


def _example(code: str, message: str) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "timestamp": "2024-01-01T00:00:00Z",
            "request_id": "abc12345",
        }
    }


COMMON_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {
        "description": "Bad Request - Validation failure or illegal state change",
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    "missing_field": {
                        "summary": "Required field missing",
                        "value": _example("VALIDATION_ERROR", "Missing required field: title"),
                    },
                    "already_responded": {
                        "summary": "Second response to an inquiry",
                        "value": _example("CONFLICT", "Inquiry has already been responded to"),
                    },
                }
            }
        },
    },
    401: {
        "description": "Unauthorized - Missing, invalid or expired token",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _example("UNAUTHORIZED", "Authentication required")}},
    },
    403: {
        "description": "Forbidden - Role, verification or ownership check failed",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _example("FORBIDDEN", "Insufficient permissions")}},
    },
    404: {
        "description": "Not Found - Unknown, malformed or hidden resource id",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _example("NOT_FOUND", "Property not found")}},
    },
    429: {
        "description": "Too Many Requests - Rate limit exceeded",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _example("RATE_LIMIT_EXCEEDED", "Rate limit exceeded")}},
    },
    500: {
        "description": "Internal Server Error - Storage or database failure",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _example("INTERNAL_SERVER_ERROR", "An unexpected error occurred")}},
    },
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }
