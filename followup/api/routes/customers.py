"""Customer report endpoints.

Listing reads the report cache only. Detail, ledger and basic-report
endpoints check the caller's access to the customer first.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from followup.api.dependencies import ReportServiceDep
from followup.api.middleware.auth import UserContextDep
from followup.observability.logging import get_logger
from followup.reports.models import (
    BasicDetailResponse,
    CustomerDetail,
    LedgerResponse,
    QueryResponse,
    SyncResult,
)
from followup.reports.query import parse_query_params

logger = get_logger(__name__)

router = APIRouter(prefix="/customers")

OptionalParam = Annotated[str | None, Query()]


@router.get("", response_model=QueryResponse)
async def list_customers(
    user: UserContextDep,
    service: ReportServiceDep,
    search: OptionalParam = None,
    balance_mode: OptionalParam = None,
    managed_by: OptionalParam = None,
    group_id: OptionalParam = None,
    page: OptionalParam = None,
    limit: OptionalParam = None,
) -> QueryResponse:
    """Search, filter and paginate the cached customer reports.

    Args:
        user: Authenticated user
        service: Report service
        search: Text or phone fragment
        balance_mode: balance_non_zero or balance_zero
        managed_by: Manager user id from the latest note
        group_id: Group id, direct or from the latest note
        page: 1-based page number
        limit: Page size

    Returns:
        One page of enriched rows with totals and cache timestamps
    """
    params = parse_query_params(
        service.query_config,
        search=search,
        balance_mode=balance_mode,
        managed_by=managed_by,
        group_id=group_id,
        page=page,
        limit=limit,
    )
    logger.debug(
        "list_customers_request",
        user_id=user.user_id,
        balance_mode=params.balance_mode.value,
        page=params.page,
        limit=params.limit,
    )
    return await service.query(params)


@router.post("/sync", response_model=SyncResult)
async def sync_customers(user: UserContextDep, service: ReportServiceDep) -> SyncResult:
    """Refresh every cached report and upsert local customers."""
    logger.info("sync_request", user_id=user.user_id)
    return await service.sync(user)


@router.get("/{customer_id}", response_model=CustomerDetail)
async def get_customer(
    customer_id: int, user: UserContextDep, service: ReportServiceDep
) -> CustomerDetail:
    """Get a customer with its report row, enrichment and handling data."""
    return await service.get_customer_detail(customer_id, user)


@router.get("/{customer_id}/ledger", response_model=LedgerResponse)
async def get_customer_ledger(
    customer_id: int, user: UserContextDep, service: ReportServiceDep
) -> LedgerResponse:
    """Get the customer's transaction ledger from upstream."""
    return await service.get_customer_ledger(customer_id, user)


@router.get("/{customer_id}/basic-reports", response_model=BasicDetailResponse)
async def get_customer_basic_reports(
    customer_id: int, user: UserContextDep, service: ReportServiceDep
) -> BasicDetailResponse:
    """Get the customer's index card merged from both contact reports."""
    return await service.get_customer_basic_detail(customer_id, user)
