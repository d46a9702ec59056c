"""Pure mappers from raw upstream rows to canonical records.

Upstream numeric formatting is inconsistent (thousands separators,
currency signs, trailing minus), so balance-like fields degrade to 0.0
instead of failing the row. Every mapper is deterministic: mapping the
same raw row twice yields equal output.
"""

import hashlib
import json
import math
from collections.abc import Iterable, Mapping
from typing import Any

from followup.reports.fields import (
    ACCOUNT_FIELDS,
    CONTACT_FIELDS,
    LEDGER_FIELDS,
    first_value,
    is_blank,
)
from followup.reports.models import (
    BALANCE_FIELDS,
    CanonicalAccountRow,
    ContactEnrichmentRow,
    LedgerRow,
)

_AMOUNT_NOISE = str.maketrans("", "", ",\u20aa$\u200e\u200f\u00a0 \t")


def parse_number(value: Any) -> float | None:
    """Parse an upstream number, returning None when it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None

    text = value.strip().translate(_AMOUNT_NOISE)
    if not text:
        return None

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative, text = True, text[1:-1]
    elif text.endswith("-"):
        negative, text = True, text[:-1]

    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return -number if negative else number


def parse_amount(value: Any) -> float:
    """Parse a balance-like value; anything unparsable is 0.0."""
    number = parse_number(value)
    return 0.0 if number is None else number


def format_number(number: float) -> str:
    """Stringify a number without a trailing '.0' for integral values."""
    if float(number).is_integer():
        return str(int(number))
    return str(number)


def text_value(value: Any) -> str | None:
    """Normalize a label value to a stripped string, None when blank."""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int | float):
        return format_number(value)
    return str(value).strip()


def card_number(value: Any) -> int | float | None:
    """Return the account card number when it is a positive number."""
    number = parse_number(value)
    if number is None or number <= 0:
        return None
    return int(number) if number.is_integer() else number


def row_fingerprint(row: Mapping[str, Any]) -> str:
    """Stable content hash of a raw row, independent of key order."""
    canonical = json.dumps(row, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def derive_external_id(
    card: int | float | None, account_key: str | None, row: Mapping[str, Any]
) -> str:
    """Pick the external id: card number, then account key, then row hash."""
    if card is not None:
        return format_number(card)
    if account_key:
        return account_key
    return f"row-{row_fingerprint(row)[:32]}"


def raw_identity(row: Mapping[str, Any]) -> tuple[str | None, str | None]:
    """Read (external id, account key) from a raw row without hashing."""
    card = card_number(first_value(row, ACCOUNT_FIELDS["account_card_number"]))
    external_id = format_number(card) if card is not None else None
    account_key = text_value(first_value(row, ACCOUNT_FIELDS["account_key"]))
    return external_id, account_key


def map_account_row(row: Mapping[str, Any]) -> CanonicalAccountRow:
    """Map a primary account/balance report row."""
    card = card_number(first_value(row, ACCOUNT_FIELDS["account_card_number"]))
    account_key = text_value(first_value(row, ACCOUNT_FIELDS["account_key"]))

    balances = {
        field: parse_amount(first_value(row, ACCOUNT_FIELDS[field]))
        for field in BALANCE_FIELDS
    }

    return CanonicalAccountRow(
        external_id=derive_external_id(card, account_key, row),
        account_card_number=card,
        account_key=account_key,
        account_name=text_value(first_value(row, ACCOUNT_FIELDS["account_name"])),
        raw_payload=json.dumps(row, ensure_ascii=False, default=str),
        **balances,
    )


def map_contact_row(row: Mapping[str, Any]) -> ContactEnrichmentRow:
    """Map a row of either contact-info report."""
    card = card_number(first_value(row, CONTACT_FIELDS["external_id"]))
    values = {
        field: text_value(first_value(row, labels))
        for field, labels in CONTACT_FIELDS.items()
        if field != "external_id"
    }
    return ContactEnrichmentRow(
        external_id=format_number(card) if card is not None else None,
        **values,
    )


def map_ledger_row(row: Mapping[str, Any]) -> LedgerRow:
    """Map a ledger row, passing values through as received."""
    return LedgerRow(
        **{field: first_value(row, labels) for field, labels in LEDGER_FIELDS.items()}
    )


def map_basic_detail_row(row: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep the non-blank fields of a raw contact row under their own labels."""
    if not row:
        return {}
    return {
        str(key): value.strip() if isinstance(value, str) else value
        for key, value in row.items()
        if not is_blank(value)
    }


def merge_basic_rows(
    primary: Mapping[str, Any] | None, secondary: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Merge two basic detail rows; the secondary only fills blanks."""
    merged: dict[str, Any] = dict(primary or {})
    for key, value in (secondary or {}).items():
        if is_blank(merged.get(key)):
            merged[key] = value
    return merged


def map_account_rows(rows: Iterable[Mapping[str, Any]]) -> list[CanonicalAccountRow]:
    return [map_account_row(row) for row in rows]


def map_contact_rows(rows: Iterable[Mapping[str, Any]]) -> list[ContactEnrichmentRow]:
    """Map contact rows, dropping those without any usable key."""
    mapped = (map_contact_row(row) for row in rows)
    return [row for row in mapped if row.is_indexable]


def map_ledger_rows(rows: Iterable[Mapping[str, Any]]) -> list[LedgerRow]:
    return [map_ledger_row(row) for row in rows]
