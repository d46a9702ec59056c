"""Async client for the upstream ERP report endpoints.

Every report is a POST of a static JSON body to a configured URL, with an
optional bearer token. Transport and protocol failures are translated into
the UpstreamError hierarchy so callers never see httpx exceptions.

Usage:
    async with ReportClient(settings.reports) as client:
        payload = await client.fetch(ReportKind.ACCOUNTS)
"""

import json
import time
from typing import Any

import httpx

from followup.config.models.reports import ReportsConfig
from followup.customers.models import LocalCustomer
from followup.observability.logging import get_logger
from followup.observability.metrics import REPORT_FETCH_ERRORS, REPORT_FETCH_LATENCY
from followup.reports.enums import ReportKind
from followup.reports.errors import (
    UpstreamBadStatusError,
    UpstreamInvalidPayloadError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = get_logger(__name__)


class ReportClient:
    """Fetches raw report payloads from the upstream ERP."""

    def __init__(
        self,
        config: ReportsConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Upstream report configuration
            transport: Optional httpx transport, used by tests to mock upstream
        """
        self._config = config
        self._client = httpx.AsyncClient(
            timeout=config.default_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ReportClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._config.token is not None:
            headers["Authorization"] = f"Bearer {self._config.token.get_secret_value()}"
        return headers

    async def fetch(
        self,
        kind: ReportKind,
        overrides: dict[str, Any] | None = None,
    ) -> Any:
        """POST a report request and return the decoded JSON payload.

        Args:
            kind: Report to fetch
            overrides: Body keys merged over the configured static body

        Raises:
            UpstreamUnavailableError: Endpoint not configured or unreachable
            UpstreamTimeoutError: Call exceeded the report's timeout
            UpstreamBadStatusError: Non-2xx response
            UpstreamInvalidPayloadError: Body is not valid JSON
        """
        kind = ReportKind(kind)
        endpoint = self._config.endpoint(kind)
        timeout = self._config.timeout_for(kind)

        if not endpoint.url:
            self._record_error(kind, "not_configured")
            raise UpstreamUnavailableError(
                f"Report '{kind.value}' endpoint is not configured",
                report_kind=kind.value,
            )

        body = {**endpoint.body, **(overrides or {})}
        start = time.perf_counter()
        try:
            response = await self._client.post(
                endpoint.url,
                json=body,
                headers=self._headers(),
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            self._record_error(kind, "timeout")
            logger.warning(
                "report_fetch_timeout",
                report_kind=kind.value,
                timeout_seconds=timeout,
            )
            raise UpstreamTimeoutError(
                f"Report '{kind.value}' timed out after {timeout}s",
                report_kind=kind.value,
                timeout_seconds=timeout,
            ) from e
        except httpx.HTTPError as e:
            self._record_error(kind, "unavailable")
            logger.warning("report_fetch_unavailable", report_kind=kind.value, error=str(e))
            raise UpstreamUnavailableError(
                f"Report '{kind.value}' is unreachable: {e}",
                report_kind=kind.value,
            ) from e
        finally:
            REPORT_FETCH_LATENCY.labels(report_kind=kind.value).observe(
                time.perf_counter() - start
            )

        if not response.is_success:
            self._record_error(kind, "bad_status")
            logger.warning(
                "report_fetch_bad_status",
                report_kind=kind.value,
                status_code=response.status_code,
            )
            raise UpstreamBadStatusError(
                f"Report '{kind.value}' returned HTTP {response.status_code}",
                report_kind=kind.value,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self._record_error(kind, "invalid_payload")
            logger.warning("report_fetch_invalid_payload", report_kind=kind.value)
            raise UpstreamInvalidPayloadError(
                f"Report '{kind.value}' returned a non-JSON body",
                report_kind=kind.value,
            ) from e

        logger.debug(
            "report_fetched",
            report_kind=kind.value,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return payload

    async def fetch_for_customer(self, kind: ReportKind, customer: LocalCustomer) -> Any:
        """Fetch a report scoped to one customer where the upstream allows it.

        The customer's company field carries the upstream account key and is
        sent under ``customer_filter_field``. The external id is a card number,
        a different identity, so it is only sent under
        ``customer_id_filter_field`` when one is configured. Otherwise the
        unscoped report is fetched and the caller narrows the rows.
        """
        endpoint = self._config.endpoint(kind)
        account_key = (customer.company or "").strip()
        overrides: dict[str, Any] | None = None
        if account_key:
            overrides = {endpoint.customer_filter_field: account_key}
        elif customer.external_id and endpoint.customer_id_filter_field:
            overrides = {endpoint.customer_id_filter_field: customer.external_id}
        return await self.fetch(kind, overrides)

    @staticmethod
    def _record_error(kind: ReportKind, error_type: str) -> None:
        REPORT_FETCH_ERRORS.labels(report_kind=kind.value, error_type=error_type).inc()
