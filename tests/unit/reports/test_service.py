"""Unit tests for ReportService."""

import asyncio
import json

import httpx
import pytest

from followup.customers.models import UserContext, UserRole
from followup.customers.stores.inmemory import InMemoryCustomerStore
from followup.reports.cache import ReportCache
from followup.reports.enums import ReportKind
from followup.reports.errors import (
    CustomerAccessDeniedError,
    CustomerNotFoundError,
    UpstreamBadStatusError,
    UpstreamTimeoutError,
)
from followup.reports.mapping import map_account_row, map_contact_row
from followup.reports.models import QueryParams
from followup.reports.service import ReportService
from tests.factories import (
    account_row,
    contact_row,
    ledger_row,
    make_customer,
    make_note,
    route_reports,
    wrap_payload,
)

ADMIN = UserContext(user_id=1, role=UserRole.ADMIN)
OWNER = UserContext(user_id=4)
STRANGER = UserContext(user_id=5)

EMAIL = 'דוא"ל'
NAME = "שם חשבון"
PHONE = "טלפון"


@pytest.fixture
def service_for(make_client, report_cache: ReportCache, customer_store):
    """Build a service whose upstream answers from a route table."""

    def _build(routes: dict | None = None) -> ReportService:
        client = make_client(route_reports(routes or {}))
        return ReportService(report_cache, client, customer_store)

    return _build


@pytest.fixture
def acme(customer_store: InMemoryCustomerStore):
    return customer_store.add_customer(make_customer(1, company="K501", created_by=4))


class TestAccessPolicy:
    """Tests for the per-customer access checks."""

    async def test_unknown_customer(self, service_for) -> None:
        with pytest.raises(CustomerNotFoundError):
            await service_for().get_customer_detail(42, ADMIN)

    async def test_stranger_is_denied(self, service_for, acme) -> None:
        with pytest.raises(CustomerAccessDeniedError) as exc_info:
            await service_for().get_customer_ledger(acme.id, STRANGER)
        assert exc_info.value.user_id == 5

    async def test_latest_note_manager_has_access(
        self, service_for, acme, report_cache: ReportCache, customer_store
    ) -> None:
        report_cache.replace(ReportKind.ACCOUNTS, [map_account_row(account_row(501, "K501"))])
        customer_store.add_note(make_note(1, acme.id, managed_by=STRANGER.user_id))

        detail = await service_for().get_customer_detail(acme.id, STRANGER)

        assert detail.customer.id == acme.id
        assert detail.handling.manager_id == STRANGER.user_id


class TestCustomerDetail:
    """Tests for get_customer_detail."""

    async def test_from_cache_with_enrichment(
        self, service_for, acme, report_cache: ReportCache
    ) -> None:
        report_cache.replace(
            ReportKind.ACCOUNTS, [map_account_row(account_row(501, "K501", "Acme", 90))]
        )
        report_cache.replace(
            ReportKind.CONTACTS_B,
            [map_contact_row(contact_row(key="K501", email="ar@acme.test"))],
        )

        detail = await service_for().get_customer_detail(acme.id, OWNER)

        assert detail.source == "cache"
        assert detail.report.account_balance == 90
        assert detail.enrichment.email == "ar@acme.test"
        assert detail.enrichment.account_name == "Acme"
        assert detail.handling is None

    async def test_cache_lookup_by_trimmed_company(
        self, service_for, report_cache: ReportCache, customer_store
    ) -> None:
        customer_store.add_customer(make_customer(2, external_id="stale", company=" K501 "))
        report_cache.replace(ReportKind.ACCOUNTS, [map_account_row(account_row(501, "K501"))])

        detail = await service_for().get_customer_detail(2, ADMIN)

        assert detail.source == "cache"
        assert detail.report.external_id == "501"

    async def test_upstream_fallback_picks_matching_row(self, service_for, acme) -> None:
        service = service_for(
            {
                "175": wrap_payload(
                    [
                        account_row(777, "K777", "Other", 1),
                        account_row(501, "K501", "Acme", 12),
                    ]
                )
            }
        )

        detail = await service.get_customer_detail(acme.id, OWNER)

        assert detail.source == "upstream"
        assert detail.report.external_id == "501"
        assert detail.report.account_balance == 12

    async def test_upstream_fallback_without_rows(self, service_for, acme) -> None:
        service = service_for({"175": {"data": {"rows": []}}})

        detail = await service.get_customer_detail(acme.id, OWNER)

        assert detail.source == "none"
        assert detail.report is None
        assert detail.enrichment is None

    async def test_upstream_column_headers_are_not_a_row(self, service_for, acme) -> None:
        service = service_for({"175": wrap_payload([])})

        detail = await service.get_customer_detail(acme.id, OWNER)

        assert detail.source == "none"
        assert detail.report is None

    async def test_upstream_fallback_by_card_number_only(
        self, make_client, report_cache: ReportCache, customer_store
    ) -> None:
        rows = [account_row(777, "K777", "Other", 1), account_row(501, "K501", "Acme", 12)]

        def honours_account_key(request: httpx.Request) -> httpx.Response:
            key = json.loads(request.content).get("account_key")
            matching = [row for row in rows if key is None or row["מפתח חשבון"] == key]
            return httpx.Response(200, json=wrap_payload(matching))

        customer_store.add_customer(make_customer(1, company=None, created_by=4))
        service = ReportService(report_cache, make_client(honours_account_key), customer_store)

        detail = await service.get_customer_detail(1, OWNER)

        assert detail.source == "upstream"
        assert detail.report.external_id == "501"
        assert detail.report.account_key == "K501"

    async def test_no_fallback_without_identity(self, service_for, customer_store) -> None:
        customer_store.add_customer(make_customer(3, external_id=None, company=" "))

        # an upstream call would hit an unrouted report and fail
        detail = await service_for().get_customer_detail(3, ADMIN)

        assert detail.source == "none"
        assert detail.report is None

    async def test_upstream_failure_propagates(self, service_for, acme) -> None:
        service = service_for({"175": httpx.Response(500)})

        with pytest.raises(UpstreamBadStatusError):
            await service.get_customer_detail(acme.id, OWNER)


class TestCustomerLedger:
    """Tests for get_customer_ledger."""

    LEDGER = wrap_payload(
        [
            ledger_row("K501", "Invoice 1001", debit=1200, balance=1200),
            ledger_row("K999", "Someone else", credit=50, balance=-50),
            ledger_row("K501", "Payment", credit=200, balance=1000),
        ]
    )

    async def test_narrows_to_customer_rows(self, service_for, acme) -> None:
        ledger = await service_for({"180": self.LEDGER}).get_customer_ledger(acme.id, OWNER)

        assert ledger.total == 2
        assert [row.details for row in ledger.rows] == ["Invoice 1001", "Payment"]
        assert ledger.rows[0].debit == 1200

    async def test_keeps_all_rows_when_none_match(self, service_for, customer_store) -> None:
        customer_store.add_customer(make_customer(2, company="K404"))

        ledger = await service_for({"180": self.LEDGER}).get_customer_ledger(2, ADMIN)

        assert ledger.total == 3

    async def test_keeps_all_rows_without_company(self, service_for, customer_store) -> None:
        customer_store.add_customer(make_customer(2))

        ledger = await service_for({"180": self.LEDGER}).get_customer_ledger(2, ADMIN)

        assert ledger.total == 3

    async def test_upstream_failure_propagates(self, service_for, acme) -> None:
        service = service_for({"180": httpx.ReadTimeout("slow")})

        with pytest.raises(UpstreamTimeoutError):
            await service.get_customer_ledger(acme.id, OWNER)


class TestCustomerBasicDetail:
    """Tests for get_customer_basic_detail."""

    CONTACTS_A = wrap_payload(
        [contact_row(501, "K501", "Acme", contact="Dana", email="  ", phone="03-1")]
    )
    CONTACTS_B = wrap_payload(
        [contact_row(501, "K501", "Acme Holdings", email="ar@acme.test", phone="03-2")]
    )

    async def test_report_a_wins_and_b_fills_blanks(self, service_for, acme) -> None:
        service = service_for({"184": self.CONTACTS_A, "185": self.CONTACTS_B})

        detail = await service.get_customer_basic_detail(acme.id, OWNER)

        assert detail.warnings == []
        assert detail.merged[NAME] == "Acme"
        assert detail.merged[PHONE] == "03-1"
        assert detail.merged[EMAIL] == "ar@acme.test"
        assert EMAIL not in detail.contacts_a

    async def test_one_failure_is_a_warning(self, service_for, acme) -> None:
        service = service_for({"184": self.CONTACTS_A, "185": httpx.Response(500)})

        detail = await service.get_customer_basic_detail(acme.id, OWNER)

        assert len(detail.warnings) == 1
        assert detail.warnings[0].startswith("contacts_b report unavailable:")
        assert detail.contacts_b is None
        assert detail.merged == detail.contacts_a

    async def test_both_failures_raise_first_error(self, service_for, acme) -> None:
        service = service_for(
            {"184": httpx.Response(502), "185": httpx.ReadTimeout("slow")}
        )

        with pytest.raises(UpstreamBadStatusError) as exc_info:
            await service.get_customer_basic_detail(acme.id, OWNER)
        assert exc_info.value.report_kind == "contacts_a"

    async def test_empty_reports(self, service_for, acme) -> None:
        empty = {"data": {"rows": []}}
        service = service_for({"184": empty, "185": empty})

        detail = await service.get_customer_basic_detail(acme.id, OWNER)

        assert detail.contacts_a is None
        assert detail.contacts_b is None
        assert detail.merged == {}


class TestQueryAndSync:
    """Tests for the cache-backed entry points."""

    ROUTES = {
        "175": wrap_payload([account_row(501, "K501", "Acme", 5), account_row(502, "K502")]),
        "184": wrap_payload([]),
        "185": wrap_payload([]),
    }

    async def test_query_reports_cache_freshness(
        self, service_for, report_cache: ReportCache
    ) -> None:
        service = service_for()
        report_cache.replace(
            ReportKind.ACCOUNTS, [map_account_row(account_row(501, "K501", balance=5))]
        )

        response = await service.query(QueryParams())

        assert response.total == 1
        assert response.cache_synced_at["accounts"] is not None
        assert response.cache_synced_at["contacts_b"] is None

    async def test_sync_assigns_caller_as_owner(self, service_for, customer_store) -> None:
        await service_for(self.ROUTES).sync(OWNER)

        ids = await customer_store.resolve_customer_ids(["501"])
        customer = await customer_store.get_by_id(ids["501"])
        assert customer.created_by == OWNER.user_id

    async def test_concurrent_syncs_run_one_at_a_time(self, service_for) -> None:
        service = service_for(self.ROUTES)

        results = await asyncio.gather(service.sync(), service.sync())

        counts = sorted((r.customers_inserted, r.customers_updated) for r in results)
        assert counts == [(0, 2), (2, 0)]
