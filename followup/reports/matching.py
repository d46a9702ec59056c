"""Selection of the upstream row that belongs to a known local customer."""

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from followup.customers.models import LocalCustomer
from followup.reports.mapping import raw_identity

RowT = TypeVar("RowT")


def row_identity(row: Any) -> tuple[str | None, str | None]:
    """Return (external id, account key) of a canonical or raw row."""
    if isinstance(row, Mapping):
        return raw_identity(row)
    return getattr(row, "external_id", None), getattr(row, "account_key", None)


def pick_best_row(rows: Sequence[RowT], customer: LocalCustomer) -> RowT | None:
    """Pick the row matching the customer's stored identity.

    Priority: external id equal to ``customer.external_id``, then account
    key equal to ``customer.company``, then the first row. Returns None
    only for an empty sequence.
    """
    if not rows:
        return None

    identities = [row_identity(row) for row in rows]

    if customer.external_id:
        for row, (external_id, _) in zip(rows, identities, strict=True):
            if external_id == customer.external_id:
                return row

    if customer.company:
        company = customer.company.strip()
        for row, (_, account_key) in zip(rows, identities, strict=True):
            if account_key == company:
                return row

    return rows[0]
