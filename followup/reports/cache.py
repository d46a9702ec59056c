"""In-memory reconciliation cache, one snapshot per cached report kind.

Each sync publishes a brand-new immutable snapshot by swapping a single
reference, so readers always see a consistent rows/index pair and never
block on a sync in progress. There is no TTL: a snapshot stays valid until
the next successful sync of its report kind replaces it.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Generic, Protocol, TypeVar

from followup.observability.logging import get_logger
from followup.observability.metrics import CACHE_SYNCED_AT, CACHED_ROWS
from followup.reports.enums import CACHED_REPORT_KINDS, ReportKind
from followup.reports.models import CanonicalAccountRow

logger = get_logger(__name__)


class KeyedRow(Protocol):
    """Anything indexable by the cache."""

    @property
    def external_id(self) -> str | None: ...

    @property
    def account_key(self) -> str | None: ...


RowT = TypeVar("RowT", bound=KeyedRow)

_EMPTY: Mapping[str, object] = MappingProxyType({})


@dataclass(frozen=True)
class ReportSnapshot(Generic[RowT]):
    """Immutable view of one report kind at one point in time.

    Attributes:
        kind: Report kind the rows belong to
        rows: Rows in upstream order
        by_external_id: External id index (first row wins on duplicates)
        by_account_key: Account key index (first row wins on duplicates)
        synced_at: When the snapshot was published, None before first sync
    """

    kind: ReportKind
    rows: tuple[RowT, ...] = ()
    by_external_id: Mapping[str, RowT] = field(default_factory=lambda: _EMPTY)
    by_account_key: Mapping[str, RowT] = field(default_factory=lambda: _EMPTY)
    synced_at: datetime | None = None

    @classmethod
    def build(
        cls, kind: ReportKind, rows: Iterable[RowT], synced_at: datetime
    ) -> "ReportSnapshot[RowT]":
        """Build a snapshot and both of its indexes from scratch."""
        ordered = tuple(rows)
        by_external_id: dict[str, RowT] = {}
        by_account_key: dict[str, RowT] = {}
        for row in ordered:
            if row.external_id:
                by_external_id.setdefault(row.external_id, row)
            if row.account_key:
                by_account_key.setdefault(row.account_key, row)

        return cls(
            kind=kind,
            rows=ordered,
            by_external_id=MappingProxyType(by_external_id),
            by_account_key=MappingProxyType(by_account_key),
            synced_at=synced_at,
        )

    def __len__(self) -> int:
        return len(self.rows)


class ReportCache:
    """Owns the published snapshot for every cached report kind.

    Instances are injected into the query engine and the sync orchestrator;
    tests build isolated caches instead of sharing process-wide state.
    """

    def __init__(self) -> None:
        """Initialize with an empty, never-synced snapshot per kind."""
        self._snapshots: dict[ReportKind, ReportSnapshot] = {
            kind: ReportSnapshot(kind=kind) for kind in CACHED_REPORT_KINDS
        }

    @staticmethod
    def _check_kind(kind: ReportKind) -> ReportKind:
        kind = ReportKind(kind)
        if kind not in CACHED_REPORT_KINDS:
            raise ValueError(f"Report kind '{kind.value}' is not cached")
        return kind

    def replace(self, kind: ReportKind, rows: Iterable[KeyedRow]) -> ReportSnapshot:
        """Publish a new snapshot for a report kind, stamped now."""
        kind = self._check_kind(kind)
        snapshot = ReportSnapshot.build(kind, rows, datetime.now(UTC))
        self._snapshots[kind] = snapshot

        CACHED_ROWS.labels(report_kind=kind.value).set(len(snapshot))
        CACHE_SYNCED_AT.labels(report_kind=kind.value).set(snapshot.synced_at.timestamp())
        logger.info(
            "report_cache_replaced",
            report_kind=kind.value,
            rows=len(snapshot),
            external_ids=len(snapshot.by_external_id),
            account_keys=len(snapshot.by_account_key),
        )
        return snapshot

    def snapshot(self, kind: ReportKind) -> ReportSnapshot:
        """Return the currently published snapshot."""
        return self._snapshots[self._check_kind(kind)]

    def rows(self, kind: ReportKind) -> tuple:
        return self.snapshot(kind).rows

    def lookup_by_external_id(self, kind: ReportKind, external_id: str | None):
        """Point lookup by external id; None when absent."""
        if not external_id:
            return None
        return self.snapshot(kind).by_external_id.get(external_id)

    def lookup_by_account_key(self, kind: ReportKind, account_key: str | None):
        """Point lookup by account key; None when absent."""
        if not account_key:
            return None
        return self.snapshot(kind).by_account_key.get(account_key)

    def synced_at(self, kind: ReportKind) -> datetime | None:
        return self.snapshot(kind).synced_at

    def synced_at_all(self) -> dict[str, datetime | None]:
        """Last sync time of every cached kind, keyed by kind value."""
        return {kind.value: self._snapshots[kind].synced_at for kind in CACHED_REPORT_KINDS}

    def account_rows(self) -> tuple[CanonicalAccountRow, ...]:
        return self.rows(ReportKind.ACCOUNTS)
