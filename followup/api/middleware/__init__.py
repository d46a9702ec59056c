"""API middleware package.

Exports middleware components for request processing.
"""

from followup.api.middleware.auth import (
    UserContextDep,
    get_user_context,
    security_scheme,
)
from followup.api.middleware.context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
    "UserContextDep",
    "get_user_context",
    "security_scheme",
]
