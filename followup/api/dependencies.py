"""Dependency injection for API routes.

Provides FastAPI dependencies for the report cache, the customer store, the
upstream client and the report service. Instances are created once and
reused; tests override them through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends

from followup.config import get_settings
from followup.config.settings import Settings
from followup.customers.store import CustomerStore
from followup.customers.stores.inmemory import InMemoryCustomerStore
from followup.customers.stores.postgres import PostgresCustomerStore
from followup.db.pool import PostgresPool
from followup.observability.logging import get_logger
from followup.reports.cache import ReportCache
from followup.reports.client import ReportClient
from followup.reports.enums import ReportKind
from followup.reports.service import ReportService

logger = get_logger(__name__)

# Shared instances, created on first access
_postgres_pool: PostgresPool | None = None
_report_cache: ReportCache | None = None
_customer_store: CustomerStore | None = None
_report_client: ReportClient | None = None
_report_service: ReportService | None = None


async def get_postgres_pool(
    settings: Annotated[Settings, Depends(get_settings)],
) -> PostgresPool:
    """Get the shared PostgreSQL connection pool.

    Creates and connects the pool on first access.
    """
    global _postgres_pool
    if _postgres_pool is None:
        _postgres_pool = PostgresPool(settings.storage.postgres)
        await _postgres_pool.connect()
    return _postgres_pool


def current_postgres_pool() -> PostgresPool | None:
    """Return the shared pool if one was created, without creating it."""
    return _postgres_pool


def get_report_cache() -> ReportCache:
    """Get the process-wide report cache."""
    global _report_cache
    if _report_cache is None:
        _report_cache = ReportCache()
        logger.info("report_cache_initialized")
    return _report_cache


async def get_customer_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CustomerStore:
    """Get the CustomerStore configured by ``storage.backend``."""
    global _customer_store
    if _customer_store is None:
        if settings.storage.backend == "postgres":
            pool = await get_postgres_pool(settings)
            _customer_store = PostgresCustomerStore(pool)
        else:
            _customer_store = InMemoryCustomerStore()
        logger.info("customer_store_initialized", store_type=settings.storage.backend)
    return _customer_store


def get_report_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ReportClient:
    """Get the shared upstream report client."""
    global _report_client
    if _report_client is None:
        _report_client = ReportClient(settings.reports)
        logger.info(
            "report_client_initialized",
            configured=[
                kind.value
                for kind in ReportKind
                if settings.reports.endpoint(kind).url
            ],
        )
    return _report_client


def get_report_service(
    settings: Annotated[Settings, Depends(get_settings)],
    cache: Annotated[ReportCache, Depends(get_report_cache)],
    client: Annotated[ReportClient, Depends(get_report_client)],
    store: Annotated[CustomerStore, Depends(get_customer_store)],
) -> ReportService:
    """Get the ReportService instance."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService(
            cache=cache,
            client=client,
            store=store,
            query_config=settings.query,
        )
        logger.info("report_service_initialized")
    return _report_service


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
ReportCacheDep = Annotated[ReportCache, Depends(get_report_cache)]
ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Closes connections before resetting.
    """
    global _postgres_pool, _report_cache, _customer_store
    global _report_client, _report_service

    if _report_client is not None:
        await _report_client.close()
        _report_client = None

    if _postgres_pool is not None:
        await _postgres_pool.close()
        _postgres_pool = None

    _report_cache = None
    _customer_store = None
    _report_service = None
    get_settings.cache_clear()
