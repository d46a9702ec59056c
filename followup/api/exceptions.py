"""API exception hierarchy and domain error mapping.

API exceptions carry status_code and error_code directly. Domain errors
raised by the report engine and the customer store are translated through
DOMAIN_ERRORS by the global exception handler.
"""

from followup.api.models.errors import ErrorCode
from followup.db.errors import StoreError
from followup.reports.errors import (
    CustomerAccessDeniedError,
    CustomerNotFoundError,
    InvalidQueryParameterError,
    ReportError,
    UpstreamBadStatusError,
    UpstreamError,
    UpstreamInvalidPayloadError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)


class FollowupAPIError(Exception):
    """Base exception for all API errors.

    Subclasses set status_code and error_code to define the HTTP response.
    """

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationError(FollowupAPIError):
    """Raised when the bearer token is missing or cannot be verified."""

    status_code = 401
    error_code = ErrorCode.UNAUTHORIZED


DOMAIN_ERRORS: dict[type[Exception], tuple[int, ErrorCode]] = {
    InvalidQueryParameterError: (400, ErrorCode.INVALID_QUERY_PARAMETER),
    CustomerAccessDeniedError: (403, ErrorCode.ACCESS_DENIED),
    CustomerNotFoundError: (404, ErrorCode.CUSTOMER_NOT_FOUND),
    UpstreamBadStatusError: (502, ErrorCode.UPSTREAM_BAD_RESPONSE),
    UpstreamInvalidPayloadError: (502, ErrorCode.UPSTREAM_BAD_RESPONSE),
    UpstreamUnavailableError: (503, ErrorCode.UPSTREAM_UNAVAILABLE),
    UpstreamTimeoutError: (504, ErrorCode.UPSTREAM_TIMEOUT),
    UpstreamError: (502, ErrorCode.UPSTREAM_BAD_RESPONSE),
    StoreError: (503, ErrorCode.STORE_UNAVAILABLE),
    ReportError: (500, ErrorCode.INTERNAL_ERROR),
}


def resolve_domain_error(exc: Exception) -> tuple[int, ErrorCode]:
    """Status and code for a domain error, most specific class first."""
    for cls in type(exc).__mro__:
        if cls in DOMAIN_ERRORS:
            return DOMAIN_ERRORS[cls]
    return 500, ErrorCode.INTERNAL_ERROR
