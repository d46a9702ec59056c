"""Configuration model exports.

    from followup.config.models import ReportsConfig, StorageConfig
"""

from followup.config.models.api import APIConfig
from followup.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from followup.config.models.query import QueryConfig
from followup.config.models.reports import ReportEndpointConfig, ReportsConfig
from followup.config.models.storage import PostgresConfig, StorageConfig

__all__ = [
    "APIConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "QueryConfig",
    "ReportEndpointConfig",
    "ReportsConfig",
    "StorageConfig",
]
