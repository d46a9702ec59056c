"""Unit tests for report row mappers."""

import json

import pytest

from followup.reports.fields import label_variants
from followup.reports.mapping import (
    card_number,
    derive_external_id,
    map_account_row,
    map_account_rows,
    map_basic_detail_row,
    map_contact_row,
    map_contact_rows,
    map_ledger_row,
    merge_basic_rows,
    parse_amount,
    parse_number,
)
from tests.factories import account_row, contact_row, ledger_row


class TestParseNumber:
    """Tests for upstream number parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (12, 12.0),
            (3.5, 3.5),
            ("1,250.00", 1250.0),
            (" ₪ 99 ", 99.0),
            ("(40.5)", -40.5),
            ("120-", -120.0),
            ("-7", -7.0),
        ],
    )
    def test_parses_upstream_formats(self, raw: object, expected: float) -> None:
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "abc", True, "nan", "inf", {"a": 1}])
    def test_unparsable_is_none(self, raw: object) -> None:
        assert parse_number(raw) is None

    def test_parse_amount_degrades_to_zero(self) -> None:
        assert parse_amount("n/a") == 0.0
        assert parse_amount(None) == 0.0


class TestCardNumber:
    """Tests for account card number normalisation."""

    def test_integral_card_is_int(self) -> None:
        assert card_number("501") == 501
        assert card_number(501.0) == 501

    @pytest.mark.parametrize("raw", [0, -3, "0", "", None, "K900"])
    def test_non_positive_or_missing_is_none(self, raw: object) -> None:
        assert card_number(raw) is None


class TestMapAccountRow:
    """Tests for the primary report mapper."""

    def test_card_number_and_formatted_balance(self) -> None:
        row = map_account_row(account_row(card="501", key="K501", balance="1,250.00"))

        assert row.external_id == "501"
        assert row.account_card_number == 501
        assert row.account_balance == 1250

    def test_empty_numeric_fields_fall_back_to_account_key(self) -> None:
        row = map_account_row(account_row(card="", key="K900", balance=""))

        assert row.external_id == "K900"
        assert row.account_card_number is None
        assert row.account_balance == 0

    def test_positive_card_wins_over_account_key(self) -> None:
        row = map_account_row(account_row(card=77, key="K77"))
        assert row.external_id == "77"
        assert row.account_key == "K77"

    def test_hash_fallback_is_stable_and_distinct(self) -> None:
        first = account_row(name="No keys", balance="5")
        second = account_row(name="No keys either", balance="5")

        assert map_account_row(first).external_id.startswith("row-")
        assert map_account_row(first).external_id == map_account_row(dict(first)).external_id
        assert map_account_row(first).external_id != map_account_row(second).external_id

    def test_hash_ignores_key_order(self) -> None:
        row = {"שם חשבון": "A", "יתרת חשבון": 1}
        reordered = {"יתרת חשבון": 1, "שם חשבון": "A"}
        assert derive_external_id(None, None, row) == derive_external_id(None, None, reordered)

    def test_mapping_is_idempotent(self) -> None:
        raw = account_row(card="501", key="K501", name=" Acme ", balance="1,250.00")
        assert map_account_row(raw) == map_account_row(raw)

    def test_all_balance_fields_parsed(self) -> None:
        raw = account_row(
            card=1,
            balance="10",
            **{
                "שיקים דחויים": "1,000",
                'סה"כ אובליגו': "2000",
                "סה״כ אשראי": "300",
                "תקרת אשראי": "garbage",
            },
        )
        row = map_account_row(raw)

        assert row.deferred_checks == 1000
        assert row.total_obligo == 2000
        assert row.total_credit == 300
        assert row.credit_limit == 0

    def test_garbled_labels_are_recognised(self) -> None:
        garbled_balance = "יתרת חשבון".encode().decode("latin-1")
        garbled_card = "מספר כרטיס חשבון".encode().decode("latin-1")

        row = map_account_row({garbled_card: "42", garbled_balance: "7"})

        assert row.external_id == "42"
        assert row.account_balance == 7

    def test_raw_payload_keeps_original_row(self) -> None:
        raw = account_row(card=501, name="אקמה")
        assert json.loads(map_account_row(raw).raw_payload) == raw

    def test_map_account_rows_keeps_order(self) -> None:
        rows = map_account_rows([account_row(card=2), account_row(card=1)])
        assert [row.external_id for row in rows] == ["2", "1"]


class TestLabelVariants:
    """Tests for label spelling variants."""

    def test_quote_swaps_both_ways(self) -> None:
        assert 'סה״כ' in label_variants('סה"כ')
        assert 'סה"כ' in label_variants("סה״כ")

    def test_original_label_first(self) -> None:
        assert label_variants("טלפון")[0] == "טלפון"

    def test_cp1252_variant_for_letters_with_undefined_bytes(self) -> None:
        label = "שם חשבון"
        garbled = label.encode().decode("cp1252", errors="replace")

        assert "\ufffd" in garbled
        assert garbled in label_variants(label)
        row = map_account_row({garbled: "Acme", "מפתח חשבון": "K1"})
        assert row.account_name == "Acme"


class TestMapContactRow:
    """Tests for the contact report mapper."""

    def test_maps_all_fields(self) -> None:
        row = map_contact_row(
            contact_row(
                card="501",
                key="K501",
                name="Acme",
                contact="Dana",
                email="dana@acme.test",
                phone="03-5551234",
                mobile="050-123-4567",
            )
        )

        assert row.external_id == "501"
        assert row.account_key == "K501"
        assert row.contact_name == "Dana"
        assert row.email == "dana@acme.test"
        assert row.mobile_phone == "050-123-4567"

    def test_blank_values_become_none(self) -> None:
        row = map_contact_row(contact_row(key="K1", email="  "))
        assert row.email is None

    def test_rows_without_keys_are_dropped(self) -> None:
        rows = map_contact_rows(
            [contact_row(email="orphan@test"), contact_row(key="K1", email="a@test")]
        )
        assert [row.account_key for row in rows] == ["K1"]


class TestMapLedgerRow:
    """Tests for the ledger mapper."""

    def test_values_pass_through_untyped(self) -> None:
        row = map_ledger_row(ledger_row(key="K1", details="invoice 17", debit="1,000.00"))

        assert row.account_key == "K1"
        assert row.details == "invoice 17"
        assert row.debit == "1,000.00"
        assert row.credit is None


class TestBasicDetail:
    """Tests for the basic detail rows and their merge."""

    def test_basic_detail_drops_blanks_and_strips(self) -> None:
        detail = map_basic_detail_row({"טלפון": " 03-1 ", "נייד": "", "x": None, "n": 0})
        assert detail == {"טלפון": "03-1", "n": 0}

    def test_basic_detail_of_missing_row_is_empty(self) -> None:
        assert map_basic_detail_row(None) == {}

    def test_primary_wins_secondary_fills_blanks(self) -> None:
        merged = merge_basic_rows(
            {"טלפון": "03-1", "כתובת": ""},
            {"טלפון": "03-2", "כתובת": "Herzl 1", "עיר": "Haifa"},
        )
        assert merged == {"טלפון": "03-1", "כתובת": "Herzl 1", "עיר": "Haifa"}

    def test_merge_with_missing_sides(self) -> None:
        assert merge_basic_rows(None, {"a": 1}) == {"a": 1}
        assert merge_basic_rows({"a": 1}, None) == {"a": 1}
