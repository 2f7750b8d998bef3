"""
Custom exception classes for the marketplace API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Malformed or missing input."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Illegal state transition, reported as a bad request."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


class InternalServerError(APIException):
    """Internal server error exception."""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="INTERNAL_SERVER_ERROR"
        )


class UpstreamError(InternalServerError):
    """Persistence or storage failure; the message stays generic."""

    def __init__(self, detail: str = "The request could not be completed"):
        super().__init__(detail)
        self.error_code = "UPSTREAM_ERROR"


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class ProfileNotFoundError(NotFoundError):
    """Valid session without a matching profile row."""

    def __init__(self):
        super().__init__("User profile")


class InactiveUserError(ForbiddenError):
    def __init__(self, detail: str = "User account is inactive"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    def __init__(self, detail: str = "Forbidden - Insufficient permissions"):
        super().__init__(detail)


# Property specific exceptions
class PropertyNotFoundError(NotFoundError):
    def __init__(self, property_id: Optional[str] = None):
        super().__init__("Property", property_id)


class PropertyAccessDeniedError(APIException):
    """Ownership failure on seller-scoped routes, reported as not found."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found or access denied",
            error_code="NOT_FOUND"
        )


class PropertyOwnershipError(ForbiddenError):
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(detail)


class PropertyStatusError(ConflictError):
    """Status change not allowed from the current state."""


# Inquiry specific exceptions
class InquiryNotFoundError(NotFoundError):
    def __init__(self, inquiry_id: Optional[str] = None):
        super().__init__("Inquiry", inquiry_id)


# File upload exceptions
class UnsupportedFileTypeError(ValidationError):
    def __init__(self, filename: str, supported_types: List[str]):
        supported = ", ".join(supported_types)
        super().__init__(f"Invalid file type for {filename}. Allowed types: {supported}")


class FileSizeExceededError(ValidationError):
    def __init__(self, filename: str, max_size: int):
        max_mb = max_size / (1024 * 1024)
        super().__init__(f"File {filename} exceeds the maximum size of {max_mb:g}MB")


class RateLimitExceededError(APIException):
    """Rate limit exceeded exception."""

    def __init__(self, retry_after: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            error_code="RATE_LIMIT_EXCEEDED",
            headers={"Retry-After": str(retry_after)}
        )


class PayloadTooLargeError(APIException):
    def __init__(self, size: int, max_size: int):
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Request size {size} bytes exceeds maximum allowed size {max_size} bytes",
            error_code="PAYLOAD_TOO_LARGE"
        )
