"""Fetch, map and publish the cached reports, then upsert local customers.

The primary report is load-bearing: if it fails, nothing is replaced and
the error propagates. A failing contact report only produces a warning and
keeps its previous snapshot.
"""

import asyncio
import time
from collections.abc import Callable, Mapping
from typing import Any

from followup.customers.models import CustomerUpsert
from followup.customers.store import CustomerStore
from followup.observability.logging import get_logger
from followup.observability.metrics import SYNC_COUNT, SYNC_WARNINGS
from followup.reports.cache import ReportCache
from followup.reports.client import ReportClient
from followup.reports.enrichment import enrich
from followup.reports.enums import CACHED_REPORT_KINDS, ReportKind
from followup.reports.errors import UpstreamError
from followup.reports.extraction import (
    extract_rows,
    looks_like_account_row,
    looks_like_contact_row,
    select_rows,
)
from followup.reports.mapping import map_account_rows, map_contact_rows
from followup.reports.models import (
    CanonicalAccountRow,
    ReportSyncSummary,
    SyncResult,
)

logger = get_logger(__name__)

RowPredicate = Callable[[Mapping[str, Any]], bool]

_PREDICATES: dict[ReportKind, RowPredicate] = {
    ReportKind.ACCOUNTS: looks_like_account_row,
    ReportKind.CONTACTS_A: looks_like_contact_row,
    ReportKind.CONTACTS_B: looks_like_contact_row,
}


class SyncOrchestrator:
    """Runs a full sync of every cached report kind."""

    def __init__(
        self,
        client: ReportClient,
        cache: ReportCache,
        store: CustomerStore,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: Upstream report client
            cache: Cache the mapped rows are published to
            store: Local customer store receiving the upsert
        """
        self._client = client
        self._cache = cache
        self._store = store

    async def sync_all(self, created_by: int | None = None) -> SyncResult:
        """Sync all cached reports.

        Args:
            created_by: Owner assigned to customers inserted by this run

        Raises:
            UpstreamError: The primary report could not be fetched
        """
        start = time.perf_counter()
        logger.info("report_sync_started", created_by=created_by)

        payloads = await asyncio.gather(
            *(self._client.fetch(kind) for kind in CACHED_REPORT_KINDS),
            return_exceptions=True,
        )
        outcomes = dict(zip(CACHED_REPORT_KINDS, payloads, strict=True))

        primary = outcomes[ReportKind.ACCOUNTS]
        if isinstance(primary, BaseException):
            SYNC_COUNT.labels(outcome="failed").inc()
            logger.error(
                "report_sync_failed",
                report_kind=ReportKind.ACCOUNTS.value,
                error=str(primary),
            )
            raise primary

        # Unexpected failures abort before any snapshot is replaced
        for kind, outcome in outcomes.items():
            if isinstance(outcome, BaseException) and not isinstance(outcome, UpstreamError):
                SYNC_COUNT.labels(outcome="failed").inc()
                logger.error("report_sync_failed", report_kind=kind.value, error=str(outcome))
                raise outcome

        result = SyncResult()
        for kind in CACHED_REPORT_KINDS:
            outcome = outcomes[kind]
            if isinstance(outcome, UpstreamError):
                result.reports.append(
                    ReportSyncSummary(kind=kind, status="failed", error=str(outcome))
                )
                result.warnings.append(f"{kind.value} report sync failed: {outcome}")
                SYNC_WARNINGS.labels(report_kind=kind.value).inc()
                logger.warning(
                    "report_sync_partial_failure",
                    report_kind=kind.value,
                    error=str(outcome),
                )
                continue
            result.reports.append(self._publish(kind, outcome))

        upsert = await self._store.upsert_by_external_id(
            self._customer_records(self._cache.account_rows()),
            created_by=created_by,
        )
        result.customers_inserted = upsert.inserted
        result.customers_updated = upsert.updated
        result.duration_ms = round((time.perf_counter() - start) * 1000, 2)

        SYNC_COUNT.labels(outcome="partial" if result.warnings else "ok").inc()
        logger.info(
            "report_sync_completed",
            warnings=len(result.warnings),
            customers_inserted=upsert.inserted,
            customers_updated=upsert.updated,
            duration_ms=result.duration_ms,
        )
        return result

    def _publish(self, kind: ReportKind, payload: Any) -> ReportSyncSummary:
        """Extract, map and cache one report payload."""
        looks_like = _PREDICATES[kind]
        rows = select_rows(extract_rows(payload, looks_like), looks_like)
        if kind is ReportKind.ACCOUNTS:
            mapped: list = map_account_rows(rows)
        else:
            mapped = map_contact_rows(rows)

        snapshot = self._cache.replace(kind, mapped)
        return ReportSyncSummary(
            kind=kind,
            status="ok",
            fetched=len(rows),
            cached=len(snapshot),
            synced_at=snapshot.synced_at,
        )

    def _customer_records(
        self, rows: tuple[CanonicalAccountRow, ...]
    ) -> list[CustomerUpsert]:
        """Local customer fields for each primary row, enriched."""
        records = []
        for row in rows:
            enrichment = enrich(row, self._cache)
            records.append(
                CustomerUpsert(
                    external_id=row.external_id,
                    name=enrichment.account_name or row.external_id,
                    email=enrichment.email,
                    phone=enrichment.phone or enrichment.mobile_phone,
                    company=row.account_key,
                )
            )
        return records
