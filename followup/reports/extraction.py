"""Heuristic location of report rows inside arbitrary JSON payloads.

Upstream report responses wrap the row array in metadata envelopes of
unknown depth and often carry decoy arrays (column headers, paging info).
The extractor collects every array reachable through nested objects and
scores each one, preferring arrays whose objects look like rows of the
expected report.
"""

from collections import deque
from collections.abc import Callable, Mapping
from typing import Any

from followup.reports.fields import (
    ACCOUNT_MARKERS,
    CONTACT_MARKERS,
    LEDGER_MARKERS,
    has_any_key,
)

RowPredicate = Callable[[Mapping[str, Any]], bool]

MATCH_WEIGHT = 1000


def looks_like_account_row(row: Mapping[str, Any]) -> bool:
    """Row carries a primary report identity or balance label."""
    return has_any_key(row, ACCOUNT_MARKERS)


def looks_like_contact_row(row: Mapping[str, Any]) -> bool:
    """Row carries an account identity or a contact name, email or phone label."""
    return has_any_key(row, CONTACT_MARKERS)


def looks_like_ledger_row(row: Mapping[str, Any]) -> bool:
    """Row carries a ledger movement or amount label."""
    return has_any_key(row, LEDGER_MARKERS)


def find_candidate_arrays(payload: Any) -> list[list[Any]]:
    """Collect every array reachable from the payload, breadth first.

    Objects are traversed; arrays are collected but not descended into.
    """
    candidates: list[list[Any]] = []
    queue: deque[Any] = deque([payload])

    while queue:
        node = queue.popleft()
        if not isinstance(node, Mapping):
            continue
        for value in node.values():
            if isinstance(value, list):
                candidates.append(value)
            elif isinstance(value, Mapping):
                queue.append(value)

    return candidates


def score_candidate(candidate: list[Any], looks_like: RowPredicate | None = None) -> int:
    """Score an array by how much it resembles report data.

    Each object element counts 1; each object element accepted by the
    predicate counts another MATCH_WEIGHT.
    """
    objects = [item for item in candidate if isinstance(item, Mapping)]
    matches = 0
    if looks_like is not None:
        matches = sum(1 for item in objects if looks_like(item))
    return MATCH_WEIGHT * matches + len(objects)


def extract_rows(payload: Any, looks_like: RowPredicate | None = None) -> list[Any]:
    """Return the array in the payload most likely to hold report rows.

    A top-level array is returned as is. A payload without any array, or
    one that is not an object at all, yields an empty list. Ties keep the
    candidate found first.
    """
    if isinstance(payload, list):
        return payload

    candidates = find_candidate_arrays(payload)
    if not candidates:
        return []

    best = candidates[0]
    best_score = score_candidate(best, looks_like)
    for candidate in candidates[1:]:
        score = score_candidate(candidate, looks_like)
        if score > best_score:
            best, best_score = candidate, score

    return best


def select_rows(
    rows: list[Any], looks_like: RowPredicate | None = None
) -> list[dict[str, Any]]:
    """Keep object rows, narrowed to predicate matches when one is given.

    Header or summary objects mixed into the data array are dropped. When
    the data array itself was empty the extractor may hand over a decoy
    array; none of its objects match, so the result is empty.
    """
    objects = [dict(row) for row in rows if isinstance(row, Mapping)]
    if looks_like is None:
        return objects

    return [row for row in objects if looks_like(row)]
