"""Errors raised by the local customer store backends.

Backend exceptions (asyncpg and friends) never leave a store; they are
wrapped here so the API can answer 503 without knowing the driver.
"""


class StoreError(Exception):
    """The customer store could not complete an operation.

    Attributes:
        cause: Driver exception that triggered the failure, if any
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """The database was unreachable or rejected the statement."""
