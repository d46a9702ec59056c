"""Entry points of the report engine used by the HTTP layer.

ReportService composes the cache, the upstream client, the query engine and
the sync orchestrator. Listing reads only the cache; the per-customer
endpoints check the local access policy first and may call upstream.
"""

import asyncio
from typing import Any

from followup.config.models.query import QueryConfig
from followup.customers.models import LocalCustomer, UserContext
from followup.customers.store import CustomerStore
from followup.observability.logging import get_logger
from followup.observability.metrics import DETAIL_UPSTREAM_FALLBACKS
from followup.reports.cache import ReportCache
from followup.reports.client import ReportClient
from followup.reports.enrichment import enrich
from followup.reports.enums import ReportKind
from followup.reports.errors import (
    CustomerAccessDeniedError,
    CustomerNotFoundError,
    UpstreamError,
)
from followup.reports.extraction import (
    extract_rows,
    looks_like_account_row,
    looks_like_contact_row,
    looks_like_ledger_row,
    select_rows,
)
from followup.reports.mapping import (
    map_account_row,
    map_basic_detail_row,
    map_ledger_rows,
    merge_basic_rows,
)
from followup.reports.matching import pick_best_row
from followup.reports.models import (
    BasicDetailResponse,
    CanonicalAccountRow,
    CustomerDetail,
    LedgerResponse,
    QueryParams,
    QueryResponse,
    SyncResult,
)
from followup.reports.query import QueryEngine
from followup.reports.sync import SyncOrchestrator

logger = get_logger(__name__)


class ReportService:
    """Query, detail, ledger, basic-detail and sync operations."""

    def __init__(
        self,
        cache: ReportCache,
        client: ReportClient,
        store: CustomerStore,
        query_config: QueryConfig | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            cache: Shared report cache
            client: Upstream report client
            store: Local customer store
            query_config: Query defaults and limits
        """
        self._cache = cache
        self._client = client
        self._store = store
        self._query_config = query_config or QueryConfig()
        self._engine = QueryEngine(cache, store)
        self._orchestrator = SyncOrchestrator(client, cache, store)
        self._sync_lock = asyncio.Lock()

    @property
    def query_config(self) -> QueryConfig:
        return self._query_config

    async def query(self, params: QueryParams) -> QueryResponse:
        """Run a list query over the cached primary report."""
        page = await self._engine.query(params)
        return QueryResponse(
            **page.model_dump(),
            cache_synced_at=self._cache.synced_at_all(),
        )

    async def sync(self, user: UserContext | None = None) -> SyncResult:
        """Run a full sync; concurrent calls wait for the running one."""
        async with self._sync_lock:
            return await self._orchestrator.sync_all(
                created_by=user.user_id if user else None
            )

    async def _load_customer(self, customer_id: int, user: UserContext) -> LocalCustomer:
        """Fetch a local customer the user is allowed to see."""
        customer = await self._store.get_by_id(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        if not await self._store.can_access(user, customer_id):
            logger.info(
                "customer_access_denied",
                customer_id=customer_id,
                user_id=user.user_id,
            )
            raise CustomerAccessDeniedError(customer_id, user.user_id)
        return customer

    def _cached_row(self, customer: LocalCustomer) -> CanonicalAccountRow | None:
        row = self._cache.lookup_by_external_id(ReportKind.ACCOUNTS, customer.external_id)
        if row is None and customer.company:
            row = self._cache.lookup_by_account_key(
                ReportKind.ACCOUNTS, customer.company.strip()
            )
        return row

    async def _upstream_row(self, customer: LocalCustomer) -> CanonicalAccountRow | None:
        """Fetch the primary report scoped to one customer and pick its row."""
        payload = await self._client.fetch_for_customer(ReportKind.ACCOUNTS, customer)
        rows = select_rows(
            extract_rows(payload, looks_like_account_row), looks_like_account_row
        )
        best = pick_best_row(rows, customer)
        return map_account_row(best) if best is not None else None

    async def get_customer_detail(
        self, customer_id: int, user: UserContext
    ) -> CustomerDetail:
        """Local customer with its primary row, enrichment and handling data.

        Raises:
            CustomerNotFoundError: Unknown customer id
            CustomerAccessDeniedError: User may not see the customer
            UpstreamError: Cache miss and the upstream fallback failed
        """
        customer = await self._load_customer(customer_id, user)

        source = "cache"
        report = self._cached_row(customer)
        if report is None:
            source = "none"
            if customer.external_id or (customer.company or "").strip():
                try:
                    report = await self._upstream_row(customer)
                except UpstreamError:
                    DETAIL_UPSTREAM_FALLBACKS.labels(outcome="error").inc()
                    raise
                if report is not None:
                    source = "upstream"
                DETAIL_UPSTREAM_FALLBACKS.labels(
                    outcome="found" if report is not None else "empty"
                ).inc()

        handling = await self._store.get_handling_metadata([customer_id])
        return CustomerDetail(
            customer=customer,
            report=report,
            enrichment=enrich(report, self._cache) if report is not None else None,
            handling=handling.get(customer_id),
            source=source,
        )

    async def get_customer_ledger(
        self, customer_id: int, user: UserContext
    ) -> LedgerResponse:
        """Fetch the customer's transaction ledger on demand."""
        customer = await self._load_customer(customer_id, user)
        payload = await self._client.fetch_for_customer(ReportKind.LEDGER, customer)
        rows = map_ledger_rows(
            select_rows(extract_rows(payload, looks_like_ledger_row), looks_like_ledger_row)
        )

        key = (customer.company or "").strip()
        if key:
            own = [row for row in rows if str(row.account_key or "").strip() == key]
            rows = own or rows

        logger.debug("customer_ledger_fetched", customer_id=customer_id, rows=len(rows))
        return LedgerResponse(customer_id=customer_id, rows=rows, total=len(rows))

    async def get_customer_basic_detail(
        self, customer_id: int, user: UserContext
    ) -> BasicDetailResponse:
        """Fetch both contact reports for the customer and merge them.

        Report A wins field by field; report B only fills A's blanks. One
        failing report becomes a warning. If both fail, the first error is
        raised.
        """
        customer = await self._load_customer(customer_id, user)
        kinds = (ReportKind.CONTACTS_A, ReportKind.CONTACTS_B)
        outcomes = await asyncio.gather(
            *(self._client.fetch_for_customer(kind, customer) for kind in kinds),
            return_exceptions=True,
        )

        details: dict[ReportKind, dict[str, Any] | None] = {}
        warnings: list[str] = []
        errors: list[UpstreamError] = []
        for kind, outcome in zip(kinds, outcomes, strict=True):
            if isinstance(outcome, UpstreamError):
                errors.append(outcome)
                warnings.append(f"{kind.value} report unavailable: {outcome}")
                logger.warning(
                    "basic_detail_report_failed",
                    customer_id=customer_id,
                    report_kind=kind.value,
                    error=str(outcome),
                )
                details[kind] = None
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            rows = select_rows(
                extract_rows(outcome, looks_like_contact_row), looks_like_contact_row
            )
            details[kind] = map_basic_detail_row(pick_best_row(rows, customer)) or None

        if len(errors) == len(kinds):
            raise errors[0]

        contacts_a = details[ReportKind.CONTACTS_A]
        contacts_b = details[ReportKind.CONTACTS_B]
        return BasicDetailResponse(
            customer_id=customer_id,
            contacts_a=contacts_a,
            contacts_b=contacts_b,
            merged=merge_basic_rows(contacts_a, contacts_b),
            warnings=warnings,
        )
