"""Prometheus metrics for Followup.

Covers upstream report calls, cache state, sync runs and customer queries.
"""

from prometheus_client import Counter, Gauge, Histogram

# Upstream report metrics
REPORT_FETCH_LATENCY = Histogram(
    "followup_report_fetch_latency_seconds",
    "Latency of upstream report calls in seconds",
    labelnames=["report_kind"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

REPORT_FETCH_ERRORS = Counter(
    "followup_report_fetch_errors_total",
    "Total number of failed upstream report calls",
    labelnames=["report_kind", "error_type"],
)

# Cache metrics
CACHED_ROWS = Gauge(
    "followup_cached_rows",
    "Number of rows held in the report cache",
    labelnames=["report_kind"],
)

CACHE_SYNCED_AT = Gauge(
    "followup_cache_synced_timestamp_seconds",
    "Unix time of the last successful cache replacement",
    labelnames=["report_kind"],
)

# Sync metrics
SYNC_COUNT = Counter(
    "followup_sync_count_total",
    "Total number of sync runs",
    labelnames=["outcome"],
)

SYNC_WARNINGS = Counter(
    "followup_sync_warnings_total",
    "Total number of non-fatal report failures during sync",
    labelnames=["report_kind"],
)

# Query metrics
QUERY_LATENCY = Histogram(
    "followup_query_latency_seconds",
    "Customer query latency in seconds",
    labelnames=["strategy"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

DETAIL_UPSTREAM_FALLBACKS = Counter(
    "followup_detail_upstream_fallbacks_total",
    "Customer detail lookups that fell back to an upstream call",
    labelnames=["outcome"],
)
