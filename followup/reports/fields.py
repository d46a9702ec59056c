"""Upstream field labels for each report kind.

Report rows are keyed by the ERP's Hebrew column labels. The same label may
arrive with ASCII quotes instead of gershayim/geresh, or garbled by a
UTF-8 payload decoded as Latin-1/cp1252 somewhere in transit, so every
canonical field maps to an ordered tuple of acceptable spellings.
"""

from collections.abc import Iterable, Mapping
from typing import Any

_QUOTE_SWAPS: tuple[tuple[str, str], ...] = (
    ('"', "״"),  # gershayim
    ("'", "׳"),  # geresh
)

_MOJIBAKE_CODECS: tuple[str, ...] = ("latin-1", "cp1252")


def label_variants(label: str) -> list[str]:
    """Return a label followed by its quote and mis-decoded variants."""
    variants = [label]
    for ascii_mark, hebrew_mark in _QUOTE_SWAPS:
        for candidate in list(variants):
            if ascii_mark in candidate:
                variants.append(candidate.replace(ascii_mark, hebrew_mark))
            if hebrew_mark in candidate:
                variants.append(candidate.replace(hebrew_mark, ascii_mark))

    # cp1252 leaves bytes such as 0x90 (in א) and 0x9D (in ם) undefined;
    # lossy decoders turn them into U+FFFD
    for candidate in list(variants):
        encoded = candidate.encode("utf-8")
        for codec in _MOJIBAKE_CODECS:
            variants.append(encoded.decode(codec, errors="replace"))

    return list(dict.fromkeys(variants))


def spellings(*labels: str) -> tuple[str, ...]:
    """Build the ordered spelling list for a canonical field."""
    result: list[str] = []
    for label in labels:
        result.extend(label_variants(label))
    return tuple(dict.fromkeys(result))


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def first_value(row: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the value under the first spelling present with a non-blank value."""
    for key in keys:
        if key in row:
            value = row[key]
            if not is_blank(value):
                return value
    return None


def has_any_key(row: Mapping[str, Any], keys: frozenset[str]) -> bool:
    """True when the row carries at least one of the given labels."""
    return any(key in keys for key in row)


# Shared identity labels
ACCOUNT_CARD_NUMBER = spellings(
    "מספר כרטיס חשבון", "מספר כרטיס", "account_card_number", "card_number"
)
ACCOUNT_KEY = spellings("מפתח חשבון", "account_key")
ACCOUNT_NAME = spellings("שם חשבון", "account_name")

# Primary account/balance report
ACCOUNT_FIELDS: dict[str, tuple[str, ...]] = {
    "account_card_number": ACCOUNT_CARD_NUMBER,
    "account_key": ACCOUNT_KEY,
    "account_name": ACCOUNT_NAME,
    "account_balance": spellings("יתרת חשבון", "account_balance"),
    "deferred_checks": spellings(
        "שיקים דחויים", "צ'קים דחויים", "המחאות דחויות", "deferred_checks"
    ),
    "open_delivery_notes_balance": spellings(
        "יתרת תעודות משלוח פתוחות", "open_delivery_notes_balance"
    ),
    "total_obligo": spellings('סה"כ אובליגו', "סך אובליגו", "total_obligo"),
    "total_credit": spellings('סה"כ אשראי', "סך אשראי", "total_credit"),
    "credit_limit": spellings("תקרת אשראי", "מסגרת אשראי", "credit_limit"),
    "credit_deviation": spellings("חריגה מאשראי", "חריגת אשראי", "credit_deviation"),
    "obligo_limit": spellings("תקרת אובליגו", "מסגרת אובליגו", "obligo_limit"),
    "obligo_deviation": spellings(
        "חריגה מאובליגו", "חריגת אובליגו", "obligo_deviation"
    ),
}

# Contact-info reports A and B share a layout
CONTACT_FIELDS: dict[str, tuple[str, ...]] = {
    "external_id": ACCOUNT_CARD_NUMBER,
    "account_key": ACCOUNT_KEY,
    "account_name": ACCOUNT_NAME,
    "contact_name": spellings("שם איש קשר", "איש קשר", "contact_name", "contact"),
    "email": spellings('דוא"ל', "דואר אלקטרוני", "email", "Email", "e-mail"),
    "phone": spellings("טלפון", "phone", "Phone"),
    "mobile_phone": spellings("טלפון נייד", "נייד", "mobile", "Mobile", "mobile_phone"),
}

# Transaction ledger report
LEDGER_FIELDS: dict[str, tuple[str, ...]] = {
    "title": spellings("כותרת", "title"),
    "movement": spellings("תנועה", "movement"),
    "batch": spellings("מנה", "batch"),
    "entry_type": spellings('ס"ת', "סוג תנועה", "entry_type"),
    "account_key": ACCOUNT_KEY,
    "account_name": ACCOUNT_NAME,
    "counter_account": spellings("ח-ן נגדי", "חשבון נגדי", "counter_account"),
    "counter_account_name": spellings("שם חשבון נגדי", "counter_account_name"),
    "reference_date": spellings("ת.אסמכ", "תאריך אסמכתא", "reference_date"),
    "value_date": spellings("ת.ערך", "תאריך ערך", "value_date"),
    "date3": spellings("תאריך 3", "date3"),
    "reference": spellings("אסמ'", "אסמכתא", "reference"),
    "reference2": spellings("אסמ'2", "אסמכתא 2", "reference2"),
    "details": spellings("פרטים", "details"),
    "debit": spellings("חובה שקל", "חובה", "debit"),
    "credit": spellings("זכות שקל", "זכות", "credit"),
    "balance": spellings("יתרה (שקל)", "יתרה", "balance"),
    "inventory_id": spellings("מזהה מלאי", "inventory_id"),
}

# Labels that identify a row as belonging to a given report
ACCOUNT_MARKERS: frozenset[str] = frozenset(
    ACCOUNT_FIELDS["account_card_number"]
    + ACCOUNT_FIELDS["account_key"]
    + ACCOUNT_FIELDS["account_balance"]
    + ACCOUNT_FIELDS["total_obligo"]
)

CONTACT_MARKERS: frozenset[str] = frozenset(
    CONTACT_FIELDS["external_id"]
    + CONTACT_FIELDS["account_key"]
    + CONTACT_FIELDS["contact_name"]
    + CONTACT_FIELDS["email"]
    + CONTACT_FIELDS["phone"]
    + CONTACT_FIELDS["mobile_phone"]
)

LEDGER_MARKERS: frozenset[str] = frozenset(
    LEDGER_FIELDS["movement"]
    + LEDGER_FIELDS["batch"]
    + LEDGER_FIELDS["debit"]
    + LEDGER_FIELDS["credit"]
    + LEDGER_FIELDS["counter_account"]
)
