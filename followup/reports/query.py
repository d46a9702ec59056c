"""Search, balance filtering, eligibility and pagination over cached rows.

Without a manager/group filter the engine slices the page first and joins
local data for that page only. With a filter, eligibility lives in the
local database, so the whole balance-filtered set is joined before slicing.
"""

import math
import re
import time
from collections.abc import Sequence

from followup.config.models.query import QueryConfig
from followup.customers.models import HandlingMetadata
from followup.customers.store import CustomerStore
from followup.observability.logging import get_logger
from followup.observability.metrics import QUERY_LATENCY
from followup.reports.cache import ReportCache
from followup.reports.enrichment import enrich
from followup.reports.enums import BalanceMode, PaginationStrategy
from followup.reports.errors import InvalidQueryParameterError
from followup.reports.models import (
    BALANCE_FIELDS,
    CanonicalAccountRow,
    EnrichedQueryRow,
    EnrichmentView,
    QueryPage,
    QueryParams,
)

logger = get_logger(__name__)

_NON_DIGITS = re.compile(r"\D+")

PHONE_FIELDS: tuple[str, ...] = ("phone", "mobile_phone")


def _parse_int(value: str | int | None, parameter: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        raise InvalidQueryParameterError(
            f"'{parameter}' must be an integer, got '{value}'", parameter
        ) from None


def parse_query_params(
    config: QueryConfig,
    *,
    search: str | None = None,
    balance_mode: str | None = None,
    managed_by: str | int | None = None,
    group_id: str | int | None = None,
    page: str | int | None = None,
    limit: str | int | None = None,
) -> QueryParams:
    """Validate raw request values into QueryParams.

    Raises:
        InvalidQueryParameterError: On any unacceptable value
    """
    mode_name = (balance_mode or "").strip() or config.default_balance_mode
    try:
        mode = BalanceMode(mode_name)
    except ValueError:
        allowed = ", ".join(m.value for m in BalanceMode)
        raise InvalidQueryParameterError(
            f"Unknown balance mode '{mode_name}', expected one of: {allowed}",
            "balance_mode",
        ) from None

    page_number = _parse_int(page, "page")
    page_size = _parse_int(limit, "limit")
    if page_number is None:
        page_number = 1
    if page_size is None:
        page_size = config.default_limit

    if page_number < 1:
        raise InvalidQueryParameterError("'page' must be at least 1", "page")
    if page_size < 1:
        raise InvalidQueryParameterError("'limit' must be at least 1", "limit")
    if page_size > config.max_limit:
        raise InvalidQueryParameterError(
            f"'limit' cannot exceed {config.max_limit}", "limit"
        )

    return QueryParams(
        search=(search or "").strip(),
        balance_mode=mode,
        managed_by=_parse_int(managed_by, "managed_by"),
        group_id=_parse_int(group_id, "group_id"),
        page=page_number,
        limit=page_size,
    )


def digits_only(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def matches_search(
    row: CanonicalAccountRow, enrichment: EnrichmentView, search: str
) -> bool:
    """Text substring over own and enriched fields, or digit match over phones."""
    text = search.strip().lower()
    if not text:
        return True

    haystack = (
        row.external_id,
        row.account_key,
        row.account_name,
        enrichment.account_name,
        enrichment.contact_name,
        enrichment.email,
        enrichment.phone,
        enrichment.mobile_phone,
    )
    if any(value and text in value.lower() for value in haystack):
        return True

    digits = digits_only(text)
    if not digits:
        return False
    return any(
        digits in digits_only(getattr(enrichment, field)) for field in PHONE_FIELDS
    )


def matches_balance(row: CanonicalAccountRow, mode: BalanceMode) -> bool:
    if mode is BalanceMode.BALANCE_ZERO:
        return row.account_balance == 0
    return row.account_balance != 0


def total_pages(total: int, limit: int) -> int:
    return max(1, math.ceil(total / limit))


class QueryEngine:
    """Runs customer list queries against the report cache."""

    def __init__(self, cache: ReportCache, store: CustomerStore) -> None:
        self._cache = cache
        self._store = store

    def _filter(
        self, params: QueryParams
    ) -> list[tuple[CanonicalAccountRow, EnrichmentView]]:
        selected = []
        for row in self._cache.account_rows():
            enrichment = enrich(row, self._cache)
            if not matches_search(row, enrichment, params.search):
                continue
            if not matches_balance(row, params.balance_mode):
                continue
            selected.append((row, enrichment))
        return selected

    async def _join_local(
        self, rows: Sequence[tuple[CanonicalAccountRow, EnrichmentView]]
    ) -> tuple[dict[str, int], dict[int, HandlingMetadata]]:
        """Batch-resolve local ids and handling metadata for a set of rows."""
        if not rows:
            return {}, {}
        ids = await self._store.resolve_customer_ids(row.external_id for row, _ in rows)
        handling = await self._store.get_handling_metadata(ids.values())
        return ids, handling

    async def query(self, params: QueryParams) -> QueryPage:
        """Filter, join and paginate the cached primary rows."""
        start = time.perf_counter()
        selected = self._filter(params)

        if params.has_eligibility_filter:
            eligible = await self._store.find_eligible_customer_ids(
                managed_by=params.managed_by,
                group_id=params.group_id,
            )
            if not eligible:
                page = QueryPage(
                    rows=[],
                    total=0,
                    page=1,
                    limit=params.limit,
                    total_pages=1,
                    strategy=PaginationStrategy.EMPTY_ELIGIBILITY,
                )
                self._observe(page, start)
                return page

            ids, handling = await self._join_local(selected)
            selected = [
                (row, enrichment)
                for row, enrichment in selected
                if ids.get(row.external_id) in eligible
            ]
            total = len(selected)
            page_rows = selected[params.offset : params.offset + params.limit]
            strategy = PaginationStrategy.JOIN_THEN_PAGE
        else:
            total = len(selected)
            page_rows = selected[params.offset : params.offset + params.limit]
            ids, handling = await self._join_local(page_rows)
            strategy = PaginationStrategy.PAGE_THEN_JOIN

        hydrated = [
            self._hydrate(params.offset + index + 1, row, enrichment, ids, handling)
            for index, (row, enrichment) in enumerate(page_rows)
        ]
        page = QueryPage(
            rows=hydrated,
            total=total,
            page=params.page,
            limit=params.limit,
            total_pages=total_pages(total, params.limit),
            strategy=strategy,
        )
        self._observe(page, start)
        return page

    @staticmethod
    def _hydrate(
        position: int,
        row: CanonicalAccountRow,
        enrichment: EnrichmentView,
        ids: dict[str, int],
        handling: dict[int, HandlingMetadata],
    ) -> EnrichedQueryRow:
        customer_id = ids.get(row.external_id)
        meta = handling.get(customer_id) if customer_id is not None else None
        return EnrichedQueryRow(
            id=position,
            customer_id=customer_id,
            external_id=row.external_id,
            account_card_number=row.account_card_number,
            account_key=row.account_key,
            **enrichment.model_dump(),
            **{field: getattr(row, field) for field in BALANCE_FIELDS},
            manager_id=meta.manager_id if meta else None,
            manager_name=meta.manager_name if meta else None,
            group_id=meta.group_id if meta else None,
            group_name=meta.group_name if meta else None,
            payment_start_date=meta.payment_start_date if meta else None,
            payment_target_date=meta.payment_target_date if meta else None,
        )

    @staticmethod
    def _observe(page: QueryPage, start: float) -> None:
        elapsed = time.perf_counter() - start
        QUERY_LATENCY.labels(strategy=page.strategy.value).observe(elapsed)
        logger.debug(
            "customer_query_completed",
            strategy=page.strategy.value,
            total=page.total,
            returned=len(page.rows),
            duration_ms=round(elapsed * 1000, 2),
        )
