"""Health check and metrics endpoints."""

import time

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from followup import __version__
from followup.api.dependencies import (
    ReportCacheDep,
    SettingsDep,
    current_postgres_pool,
)
from followup.api.models.health import ComponentHealth, HealthResponse, HealthStatus
from followup.observability.logging import get_logger
from followup.reports.enums import ReportKind

logger = get_logger(__name__)

router = APIRouter()


def _check_cache(cache_synced_at: dict) -> ComponentHealth:
    """The primary report must have been synced at least once."""
    if cache_synced_at.get(ReportKind.ACCOUNTS.value) is None:
        return ComponentHealth(
            name="report_cache",
            status="degraded",
            message="Primary report not synced yet",
        )
    missing = [kind for kind, synced in cache_synced_at.items() if synced is None]
    if missing:
        return ComponentHealth(
            name="report_cache",
            status="degraded",
            message=f"Not synced yet: {', '.join(missing)}",
        )
    return ComponentHealth(name="report_cache", status="healthy")


async def _check_postgres() -> ComponentHealth:
    pool = current_postgres_pool()
    if pool is None or not pool.is_connected:
        return ComponentHealth(
            name="postgres", status="unhealthy", message="Pool not connected"
        )

    start = time.perf_counter()
    healthy = await pool.health_check()
    latency_ms = (time.perf_counter() - start) * 1000
    return ComponentHealth(
        name="postgres",
        status="healthy" if healthy else "unhealthy",
        latency_ms=latency_ms,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep, cache: ReportCacheDep) -> HealthResponse:
    """Check service health status.

    The service is degraded until every cached report has synced once, and
    unhealthy when a configured Postgres store cannot be reached.
    """
    synced_at = cache.synced_at_all()
    components = [_check_cache(synced_at)]
    if settings.storage.backend == "postgres":
        components.append(await _check_postgres())

    overall_status: HealthStatus
    if any(c.status == "unhealthy" for c in components):
        overall_status = "unhealthy"
    elif any(c.status == "degraded" for c in components):
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    logger.debug("health_check_completed", status=overall_status)

    return HealthResponse(
        status=overall_status,
        version=__version__,
        components=components,
        cache_synced_at=synced_at,
    )


async def get_metrics() -> Response:
    """Get Prometheus metrics in text format for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
