"""API models package.

Exports request/response models owned by the API layer.
"""

from followup.api.models.errors import (
    ErrorBody,
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
)
from followup.api.models.health import ComponentHealth, HealthResponse

__all__ = [
    "ComponentHealth",
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
]
