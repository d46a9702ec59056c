"""Upstream report endpoint configuration models."""

from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ReportEndpointConfig(BaseModel):
    """Configuration for a single upstream report endpoint."""

    report_number: int = Field(..., description="Report number in the upstream ERP")
    url: str | None = Field(
        default=None,
        description="Full URL the report is POSTed to",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-report timeout, falls back to the reports default",
    )
    body: dict[str, Any] = Field(
        default_factory=dict,
        description="Static JSON body sent with every request",
    )
    customer_filter_field: str = Field(
        default="account_key",
        description="Body key carrying the account key of a single customer",
    )
    customer_id_filter_field: str | None = Field(
        default=None,
        description=(
            "Body key carrying the account card number; when unset, customers "
            "known only by card number get the unscoped report"
        ),
    )


class ReportsConfig(BaseModel):
    """Upstream ERP report configuration."""

    token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent to every report endpoint",
    )
    default_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for report calls without their own",
    )
    accounts: ReportEndpointConfig = Field(
        default_factory=lambda: ReportEndpointConfig(report_number=175),
        description="Primary account/balance report",
    )
    contacts_a: ReportEndpointConfig = Field(
        default_factory=lambda: ReportEndpointConfig(report_number=184),
        description="Contact-info report A",
    )
    contacts_b: ReportEndpointConfig = Field(
        default_factory=lambda: ReportEndpointConfig(report_number=185),
        description="Contact-info report B",
    )
    ledger: ReportEndpointConfig = Field(
        default_factory=lambda: ReportEndpointConfig(report_number=180),
        description="Customer transaction ledger report",
    )

    def endpoint(self, kind: Any) -> ReportEndpointConfig:
        """Return the endpoint configuration for a report kind value."""
        endpoint = getattr(self, getattr(kind, "value", kind), None)
        if not isinstance(endpoint, ReportEndpointConfig):
            raise ValueError(f"Unknown report kind: {kind}")
        return endpoint

    def timeout_for(self, kind: Any) -> float:
        """Return the effective timeout in seconds for a report kind."""
        return self.endpoint(kind).timeout_seconds or self.default_timeout_seconds
