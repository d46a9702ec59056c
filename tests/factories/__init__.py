"""Test factories for creating test data."""

from tests.factories.customers import make_customer, make_note
from tests.factories.reports import (
    account_row,
    contact_row,
    ledger_row,
    route_reports,
    wrap_payload,
)

__all__ = [
    "account_row",
    "contact_row",
    "ledger_row",
    "make_customer",
    "make_note",
    "route_reports",
    "wrap_payload",
]
