"""External financial-report reconciliation and caching engine.

Pulls account data from the upstream ERP report endpoints, normalizes the
rows, merges the partial sources into one enriched view per customer, keeps
it in an in-memory cache and serves it with search, filters and pagination.
"""

from followup.reports.cache import ReportCache, ReportSnapshot
from followup.reports.client import ReportClient
from followup.reports.enums import BalanceMode, PaginationStrategy, ReportKind
from followup.reports.errors import (
    CustomerAccessDeniedError,
    CustomerNotFoundError,
    InvalidQueryParameterError,
    ReportError,
    UpstreamBadStatusError,
    UpstreamError,
    UpstreamInvalidPayloadError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from followup.reports.query import QueryEngine, parse_query_params
from followup.reports.service import ReportService
from followup.reports.sync import SyncOrchestrator

__all__ = [
    "BalanceMode",
    "CustomerAccessDeniedError",
    "CustomerNotFoundError",
    "InvalidQueryParameterError",
    "PaginationStrategy",
    "QueryEngine",
    "ReportCache",
    "ReportClient",
    "ReportError",
    "ReportKind",
    "ReportService",
    "ReportSnapshot",
    "SyncOrchestrator",
    "UpstreamBadStatusError",
    "UpstreamError",
    "UpstreamInvalidPayloadError",
    "UpstreamTimeoutError",
    "UpstreamUnavailableError",
    "parse_query_params",
]
