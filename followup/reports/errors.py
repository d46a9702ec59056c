"""Error hierarchy for the report reconciliation engine.

Upstream failures are retryable service errors; query parameter problems
are caller errors rejected before the cache is read. A payload without any
row array is not an error at all and yields an empty dataset.
"""


class ReportError(Exception):
    """Base exception for report engine errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UpstreamError(ReportError):
    """Raised when an upstream report call fails.

    Attributes:
        report_kind: Value of the report kind that failed
        retryable: Whether retrying the call later may succeed
    """

    retryable: bool = True

    def __init__(self, message: str, report_kind: str | None = None) -> None:
        super().__init__(message)
        self.report_kind = report_kind


class UpstreamUnavailableError(UpstreamError):
    """Raised when the upstream endpoint cannot be reached."""


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream call exceeds its configured timeout."""

    def __init__(
        self,
        message: str,
        report_kind: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message, report_kind)
        self.timeout_seconds = timeout_seconds


class UpstreamBadStatusError(UpstreamError):
    """Raised when the upstream endpoint answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        report_kind: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, report_kind)
        self.status_code = status_code


class UpstreamInvalidPayloadError(UpstreamError):
    """Raised when the upstream body is not valid JSON."""


class InvalidQueryParameterError(ReportError):
    """Raised when a query parameter cannot be accepted."""

    def __init__(self, message: str, parameter: str) -> None:
        super().__init__(message)
        self.parameter = parameter


class CustomerNotFoundError(ReportError):
    """Raised when a local customer id does not exist."""

    def __init__(self, customer_id: int) -> None:
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class CustomerAccessDeniedError(ReportError):
    """Raised when a user may not see a local customer."""

    def __init__(self, customer_id: int, user_id: int) -> None:
        super().__init__(f"User {user_id} has no access to customer {customer_id}")
        self.customer_id = customer_id
        self.user_id = user_id
