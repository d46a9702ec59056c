"""API route registration.

This module provides helper functions for registering API routers
with the FastAPI application.
"""

from fastapi import APIRouter, FastAPI

from followup.observability.logging import get_logger

logger = get_logger(__name__)


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all routes."""
    router = APIRouter(prefix="/v1")

    from followup.api.routes.customers import router as customers_router

    router.include_router(customers_router, tags=["Customers"])

    logger.debug("v1_router_created", routes=["customers"])

    return router


def register_routes(app: FastAPI, metrics_path: str | None = "/metrics") -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
        metrics_path: Where to expose Prometheus metrics, None to disable
    """
    app.include_router(create_v1_router())

    # Health and metrics live at root level
    from followup.api.routes.health import get_metrics
    from followup.api.routes.health import router as health_router

    app.include_router(health_router, tags=["Health"])
    if metrics_path:
        app.add_api_route(metrics_path, get_metrics, methods=["GET"], tags=["Health"])

    logger.info("routes_registered", metrics_path=metrics_path)
