"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request validation failed."""

    INVALID_QUERY_PARAMETER = "INVALID_QUERY_PARAMETER"
    """A list query parameter was rejected."""

    UNAUTHORIZED = "UNAUTHORIZED"
    """Bearer token missing, invalid or expired."""

    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
    """The customer id does not exist locally."""

    ACCESS_DENIED = "ACCESS_DENIED"
    """The user may not see this customer."""

    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    """The upstream report endpoint could not be reached."""

    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    """The upstream report call timed out."""

    UPSTREAM_BAD_RESPONSE = "UPSTREAM_BAD_RESPONSE"
    """The upstream answered with an error status or a non-JSON body."""

    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    """The local customer store failed."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorDetail(BaseModel):
    """Field-level error information."""

    field: str | None = None
    """The field that caused the error, if applicable."""

    message: str
    """Human-readable error description."""


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    """Machine-readable error code."""

    message: str
    """Human-readable error message."""

    details: list[ErrorDetail] | None = None
    """Additional error details."""


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "CUSTOMER_NOT_FOUND",
                "message": "Customer 42 not found"
            }
        }
    """

    error: ErrorBody
