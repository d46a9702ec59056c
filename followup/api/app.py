"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, and route registration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from followup import __version__
from followup.api.dependencies import reset_dependencies
from followup.api.exceptions import (
    AuthenticationError,
    FollowupAPIError,
    resolve_domain_error,
)
from followup.api.middleware.context import RequestContextMiddleware
from followup.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from followup.api.routes import register_routes
from followup.config import get_settings
from followup.db.errors import StoreError
from followup.observability.logging import get_logger, setup_logging
from followup.reports.errors import InvalidQueryParameterError, ReportError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Release the upstream client and database pool on shutdown."""
    yield
    await reset_dependencies()
    logger.info("app_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    logging_config = settings.observability.logging
    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        redact_pii=logging_config.redact_pii,
    )

    app = FastAPI(
        title="Followup API",
        description="Customer follow-up backed by cached ERP financial reports",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    metrics = settings.observability.metrics
    register_routes(app, metrics_path=metrics.path if metrics.enabled else None)

    logger.info(
        "app_created",
        debug=settings.debug,
        cors_origins=settings.api.cors_origins,
        storage_backend=settings.storage.backend,
    )

    return app


def _error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    response = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
        headers=headers,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(FollowupAPIError)
    async def api_error_handler(request: Request, exc: FollowupAPIError) -> JSONResponse:
        """Handle FollowupAPIError and its subclasses."""
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        headers = (
            {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        )
        return _error_response(exc.status_code, exc.error_code, exc.message, headers=headers)

    @app.exception_handler(ReportError)
    async def report_error_handler(request: Request, exc: ReportError) -> JSONResponse:
        """Handle report engine errors."""
        status_code, code = resolve_domain_error(exc)
        logger.warning(
            "report_error",
            error_code=code.value,
            error_type=type(exc).__name__,
            message=exc.message,
            path=request.url.path,
        )
        details = None
        if isinstance(exc, InvalidQueryParameterError):
            details = [ErrorDetail(field=exc.parameter, message=exc.message)]
        return _error_response(status_code, code, exc.message, details=details)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """Handle local customer store failures."""
        status_code, code = resolve_domain_error(exc)
        logger.error(
            "store_error",
            error_type=type(exc).__name__,
            message=str(exc),
            path=request.url.path,
        )
        return _error_response(status_code, code, "Customer store unavailable")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
        )

        details = [
            ErrorDetail(
                field=".".join(str(loc) for loc in error["loc"]),
                message=error["msg"],
            )
            for error in exc.errors()
        ]
        return _error_response(
            400, ErrorCode.INVALID_REQUEST, "Request validation failed", details=details
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return _error_response(500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")

    logger.debug("exception_handlers_registered")


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "followup.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
    )
