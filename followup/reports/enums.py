"""Enums for the report reconciliation engine."""

from enum import Enum


class ReportKind(str, Enum):
    """Upstream report endpoints the engine knows how to read."""

    ACCOUNTS = "accounts"
    """Primary account/balance report (175)."""

    CONTACTS_A = "contacts_a"
    """Bulk contact-info report (184), fallback enrichment source."""

    CONTACTS_B = "contacts_b"
    """Curated contact-info report (185), preferred enrichment source."""

    LEDGER = "ledger"
    """Customer-scoped transaction ledger (180), never cached."""


CACHED_REPORT_KINDS: tuple[ReportKind, ...] = (
    ReportKind.ACCOUNTS,
    ReportKind.CONTACTS_A,
    ReportKind.CONTACTS_B,
)


class BalanceMode(str, Enum):
    """Balance predicate applied to primary report rows."""

    BALANCE_NON_ZERO = "balance_non_zero"
    BALANCE_ZERO = "balance_zero"


class PaginationStrategy(str, Enum):
    """How a query page was assembled."""

    PAGE_THEN_JOIN = "page_then_join"
    """No eligibility filter: slice first, join local data for the page only."""

    JOIN_THEN_PAGE = "join_then_page"
    """Eligibility filter: join the whole set, filter, then slice."""

    EMPTY_ELIGIBILITY = "empty_eligibility"
    """Eligibility filter matched no local customers."""
