"""JWT authentication for API requests.

Tokens are issued by the CRUD service. The ``sub`` claim carries the local
user id and the optional ``role`` claim the access role.
"""

import os
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from followup.api.exceptions import AuthenticationError
from followup.config import get_settings
from followup.customers.models import UserContext
from followup.observability.logging import get_logger

logger = get_logger(__name__)

# Security scheme for OpenAPI docs
security_scheme = HTTPBearer(auto_error=False)


def get_jwt_secret() -> str:
    """Get JWT secret from environment."""
    secret = os.environ.get("FOLLOWUP_JWT_SECRET") or os.environ.get("JWT_SECRET")
    if not secret:
        raise RuntimeError("FOLLOWUP_JWT_SECRET environment variable not set")
    return secret


async def get_user_context(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> UserContext:
    """Extract and validate the user from the bearer token.

    Raises:
        AuthenticationError: Token missing, invalid, expired, or without a user id
    """
    if credentials is None:
        logger.warning("auth_missing_token", path=request.url.path)
        raise AuthenticationError("Missing authentication token")

    try:
        payload = jwt.decode(
            credentials.credentials,
            get_jwt_secret(),
            algorithms=[get_settings().api.jwt_algorithm],
        )
        subject = payload.get("sub") or payload.get("user_id")
        if subject is None:
            logger.warning("auth_missing_subject", path=request.url.path)
            raise AuthenticationError("Token missing sub claim")

        context = UserContext(
            user_id=int(subject),
            role=payload.get("role") or "user",
        )
    except JWTError as e:
        logger.warning("auth_jwt_error", error=str(e), path=request.url.path)
        raise AuthenticationError("Invalid or expired token") from None
    except (ValidationError, ValueError, TypeError) as e:
        logger.warning("auth_validation_error", error=str(e), path=request.url.path)
        raise AuthenticationError("Invalid token claims") from None

    logger.debug("auth_success", user_id=context.user_id, role=context.role.value)
    return context


# Type alias for dependency injection
UserContextDep = Annotated[UserContext, Depends(get_user_context)]
