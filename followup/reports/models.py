"""Report engine domain models.

Canonical rows are frozen: they are shared between cache snapshots and
query responses and must never be mutated after mapping.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from followup.customers.models import HandlingMetadata, LocalCustomer
from followup.reports.enums import BalanceMode, PaginationStrategy, ReportKind

BALANCE_FIELDS: tuple[str, ...] = (
    "account_balance",
    "deferred_checks",
    "open_delivery_notes_balance",
    "total_obligo",
    "total_credit",
    "credit_limit",
    "credit_deviation",
    "obligo_limit",
    "obligo_deviation",
)


class CanonicalAccountRow(BaseModel):
    """Normalized row of the primary account/balance report."""

    model_config = ConfigDict(frozen=True)

    external_id: str = Field(..., min_length=1, description="Join key into local customers")
    account_card_number: int | float | None = Field(
        default=None, description="Positive account card number"
    )
    account_key: str | None = Field(default=None, description="Secondary upstream key")
    account_name: str | None = Field(default=None, description="Name from the report")
    account_balance: float = 0.0
    deferred_checks: float = 0.0
    open_delivery_notes_balance: float = 0.0
    total_obligo: float = 0.0
    total_credit: float = 0.0
    credit_limit: float = 0.0
    credit_deviation: float = 0.0
    obligo_limit: float = 0.0
    obligo_deviation: float = 0.0
    raw_payload: str = Field(default="{}", description="Original row as JSON")


class ContactEnrichmentRow(BaseModel):
    """Normalized row of a contact-info report."""

    model_config = ConfigDict(frozen=True)

    external_id: str | None = None
    account_key: str | None = None
    account_name: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    mobile_phone: str | None = None

    @property
    def is_indexable(self) -> bool:
        """A row needs an external id or an account key to be cached."""
        return bool(self.external_id or self.account_key)


class LedgerRow(BaseModel):
    """Row of the transaction ledger, values passed through untyped."""

    model_config = ConfigDict(frozen=True)

    title: Any = None
    movement: Any = None
    batch: Any = None
    entry_type: Any = None
    account_key: Any = None
    account_name: Any = None
    counter_account: Any = None
    counter_account_name: Any = None
    reference_date: Any = None
    value_date: Any = None
    date3: Any = None
    reference: Any = None
    reference2: Any = None
    details: Any = None
    debit: Any = None
    credit: Any = None
    balance: Any = None
    inventory_id: Any = None


class EnrichmentView(BaseModel):
    """Name and contact fields merged from the contact reports."""

    model_config = ConfigDict(frozen=True)

    account_name: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    mobile_phone: str | None = None


class EnrichedQueryRow(BaseModel):
    """Primary row joined with local customer data and enrichment.

    Built per response and never persisted. ``id`` is the row's position
    in the current result set, not a stable identifier.
    """

    id: int
    customer_id: int | None = None
    external_id: str
    account_card_number: int | float | None = None
    account_key: str | None = None
    account_name: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    mobile_phone: str | None = None
    account_balance: float = 0.0
    deferred_checks: float = 0.0
    open_delivery_notes_balance: float = 0.0
    total_obligo: float = 0.0
    total_credit: float = 0.0
    credit_limit: float = 0.0
    credit_deviation: float = 0.0
    obligo_limit: float = 0.0
    obligo_deviation: float = 0.0
    manager_id: int | None = None
    manager_name: str | None = None
    group_id: int | None = None
    group_name: str | None = None
    payment_start_date: date | None = None
    payment_target_date: date | None = None


class QueryParams(BaseModel):
    """Validated customer list query."""

    model_config = ConfigDict(frozen=True)

    search: str = ""
    balance_mode: BalanceMode = BalanceMode.BALANCE_NON_ZERO
    managed_by: int | None = None
    group_id: int | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_eligibility_filter(self) -> bool:
        return self.managed_by is not None or self.group_id is not None


class QueryPage(BaseModel):
    """One page of enriched rows plus totals."""

    rows: list[EnrichedQueryRow] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 1
    strategy: PaginationStrategy = PaginationStrategy.PAGE_THEN_JOIN


class QueryResponse(QueryPage):
    """Query page as exposed to the serving layer."""

    cache_synced_at: dict[str, datetime | None] = Field(default_factory=dict)


class ReportSyncSummary(BaseModel):
    """Outcome of syncing one report kind."""

    kind: ReportKind
    status: Literal["ok", "failed"]
    fetched: int = Field(default=0, description="Rows found in the payload")
    cached: int = Field(default=0, description="Rows published to the cache")
    synced_at: datetime | None = None
    error: str | None = None


class SyncResult(BaseModel):
    """Outcome of a full sync run."""

    reports: list[ReportSyncSummary] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    customers_inserted: int = 0
    customers_updated: int = 0
    duration_ms: float = 0.0

    def summary_for(self, kind: ReportKind) -> ReportSyncSummary | None:
        for summary in self.reports:
            if summary.kind == kind:
                return summary
        return None


class CustomerDetail(BaseModel):
    """Local customer joined with its primary report row."""

    customer: LocalCustomer
    report: CanonicalAccountRow | None = None
    enrichment: EnrichmentView | None = None
    handling: HandlingMetadata | None = None
    source: Literal["cache", "upstream", "none"] = "none"


class LedgerResponse(BaseModel):
    """Ledger rows fetched on demand for one customer."""

    customer_id: int
    rows: list[LedgerRow] = Field(default_factory=list)
    total: int = 0


class BasicDetailResponse(BaseModel):
    """Customer index card assembled from both contact reports."""

    customer_id: int
    contacts_a: dict[str, Any] | None = None
    contacts_b: dict[str, Any] | None = None
    merged: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
