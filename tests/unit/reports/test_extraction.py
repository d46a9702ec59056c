"""Unit tests for report row extraction."""

from followup.reports.extraction import (
    MATCH_WEIGHT,
    extract_rows,
    find_candidate_arrays,
    looks_like_account_row,
    looks_like_contact_row,
    looks_like_ledger_row,
    score_candidate,
    select_rows,
)
from tests.factories import account_row, contact_row, ledger_row, wrap_payload


class TestRowPredicates:
    """Tests for the per-report row recognisers."""

    def test_account_row_recognised_by_hebrew_labels(self) -> None:
        assert looks_like_account_row(account_row(card=501, balance="10"))

    def test_account_row_recognised_with_ascii_quote_variant(self) -> None:
        assert looks_like_account_row({'סה"כ אובליגו': 5})
        assert looks_like_account_row({"סה״כ אובליגו": 5})

    def test_contact_row_recognised(self) -> None:
        assert looks_like_contact_row(contact_row(email="a@b.co"))
        assert not looks_like_contact_row({"name": "x"})

    def test_ledger_row_recognised(self) -> None:
        assert looks_like_ledger_row(ledger_row(debit="10"))
        assert not looks_like_ledger_row(account_row(card=1))


class TestFindCandidateArrays:
    """Tests for candidate array discovery."""

    def test_collects_arrays_at_any_depth(self) -> None:
        payload = {"a": [1], "b": {"c": {"d": [2, 3]}}}
        assert find_candidate_arrays(payload) == [[1], [2, 3]]

    def test_does_not_descend_into_arrays(self) -> None:
        payload = {"outer": [{"inner": [1, 2]}]}
        assert find_candidate_arrays(payload) == [[{"inner": [1, 2]}]]

    def test_scalar_payload_has_no_candidates(self) -> None:
        assert find_candidate_arrays("nope") == []


class TestScoreCandidate:
    """Tests for candidate scoring."""

    def test_objects_count_one_each(self) -> None:
        assert score_candidate([{}, {}, "x", 3]) == 2

    def test_matches_outweigh_object_count(self) -> None:
        candidate = [account_row(card=1), {"other": True}]
        assert score_candidate(candidate, looks_like_account_row) == MATCH_WEIGHT + 2


class TestExtractRows:
    """Tests for extract_rows."""

    def test_top_level_array_returned_as_is(self) -> None:
        rows = [{"a": 1}, "b"]
        assert extract_rows(rows) is rows

    def test_nested_true_array_beats_larger_decoy(self) -> None:
        rows = [account_row(card=501), account_row(card=502)]
        payload = wrap_payload(rows)

        assert extract_rows(payload, looks_like_account_row) == rows

    def test_without_predicate_largest_object_array_wins(self) -> None:
        payload = wrap_payload([account_row(card=501)])

        assert extract_rows(payload) == payload["meta"]["columns"]

    def test_tie_keeps_first_candidate(self) -> None:
        first = [{"x": 1}]
        second = [{"y": 2}]
        assert extract_rows({"first": first, "second": second}) is first

    def test_payload_without_arrays_is_empty(self) -> None:
        assert extract_rows({"status": "ok", "meta": {"count": 0}}) == []

    def test_non_object_payload_is_empty(self) -> None:
        assert extract_rows(None) == []
        assert extract_rows(42) == []


class TestSelectRows:
    """Tests for select_rows."""

    def test_drops_non_object_entries(self) -> None:
        assert select_rows([{"a": 1}, "b", None]) == [{"a": 1}]

    def test_narrows_to_matching_rows(self) -> None:
        header = {"title": "summary"}
        row = contact_row(card=501, email="a@b.co")
        assert select_rows([header, row], looks_like_contact_row) == [row]

    def test_nothing_matching_is_empty(self) -> None:
        rows = [{"a": 1}, {"b": 2}]
        assert select_rows(rows, looks_like_contact_row) == []

    def test_decoy_columns_of_empty_report_are_dropped(self) -> None:
        payload = wrap_payload([])

        rows = extract_rows(payload, looks_like_account_row)

        assert rows == payload["meta"]["columns"]
        assert select_rows(rows, looks_like_account_row) == []

    def test_contact_row_with_identity_only_is_kept(self) -> None:
        row = contact_row(key="K501", name="Acme Ltd")
        assert select_rows([{"name": "a"}, row], looks_like_contact_row) == [row]
