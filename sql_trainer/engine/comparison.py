"""
Result-set equivalence between a reference result and a candidate result.

Rules:
- Column names are ignored; arity (column count) and positional values matter.
- Row counts must match.
- Unordered comparison treats rows as a multiset.
- Ordered comparison requires the row sequence to match, except that rows tied
  on the ordering query's sort keys may appear in any order among themselves.
  Without resolvable sort keys the whole sequence must match exactly.
- Values are canonicalized before comparison: numbers become decimals rounded
  to 6 places, aware datetimes are converted to naive UTC, midnight datetimes
  compare equal to dates, arrays compare element-wise.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Hashable, List, Optional, Sequence, Tuple

from sql_trainer.domain.models import QueryResult

NUMERIC_QUANTUM = Decimal("0.000001")

Row = Tuple[Hashable, ...]


@dataclass(frozen=True)
class Comparison:
    equivalent: bool
    reason: Optional[str] = None


def canonical_value(value: Any) -> Hashable:
    """Normalize a value so equal-meaning representations compare equal."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float, Decimal)):
        return _canonical_number(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        if value.time() == time(0):
            return value.date()
        return value
    if isinstance(value, date):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        return tuple(canonical_value(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((str(k), repr(canonical_value(v))) for k, v in value.items()))
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value


def _canonical_number(value: Any) -> Hashable:
    number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not number.is_finite():
        return str(number)
    try:
        return number.quantize(NUMERIC_QUANTUM, rounding=ROUND_HALF_EVEN).normalize()
    except InvalidOperation:
        # too many digits for the quantum; compare at full precision
        return number.normalize()


def canonical_rows(rows: Sequence[Sequence[Any]]) -> List[Row]:
    return [tuple(canonical_value(v) for v in row) for row in rows]


def _tie_groups(rows: Sequence[Row], key_indexes: Sequence[int]) -> List[Tuple[int, int]]:
    """Half-open [start, end) spans of consecutive rows sharing the same sort key."""
    spans: List[Tuple[int, int]] = []
    start = 0
    for i in range(1, len(rows) + 1):
        if i == len(rows) or _key(rows[i], key_indexes) != _key(rows[start], key_indexes):
            spans.append((start, i))
            start = i
    return spans


def _key(row: Row, key_indexes: Sequence[int]) -> Tuple[Hashable, ...]:
    return tuple(row[i] for i in key_indexes)


def _ordered_equal(
    ordering_side: List[Row], other_side: List[Row], key_indexes: Optional[Sequence[int]]
) -> bool:
    if key_indexes is None:
        return ordering_side == other_side
    for start, end in _tie_groups(ordering_side, key_indexes):
        if Counter(ordering_side[start:end]) != Counter(other_side[start:end]):
            return False
    return True


def results_equivalent(
    reference: QueryResult,
    candidate: QueryResult,
    ordered: bool = False,
    key_indexes: Optional[Sequence[int]] = None,
    keys_from_candidate: bool = False,
) -> Comparison:
    """
    Decide whether `candidate` returns the same result as `reference`.

    Parameters
    ----------
    reference, candidate : QueryResult
        Executed results.
    ordered : bool
        Whether row order matters (either query has a top-level ORDER BY).
    key_indexes : sequence[int] | None
        Output positions of the ordering query's sort keys, used to allow any
        order within tied rows. None means the exact sequence must match.
    keys_from_candidate : bool
        True when the sort keys belong to the candidate (only it is ordered), so
        tie groups are computed over the candidate rows.
    """
    if len(reference.columns) != len(candidate.columns):
        return Comparison(
            False,
            f"Expected {len(reference.columns)} column(s), got {len(candidate.columns)}.",
        )
    if len(reference.rows) != len(candidate.rows):
        return Comparison(
            False, f"Expected {len(reference.rows)} row(s), got {len(candidate.rows)}."
        )

    expected = canonical_rows(reference.rows)
    actual = canonical_rows(candidate.rows)

    if Counter(expected) != Counter(actual):
        return Comparison(False, "The returned rows do not match the expected result.")
    if not ordered:
        return Comparison(True)

    if keys_from_candidate:
        in_order = _ordered_equal(actual, expected, key_indexes)
    else:
        in_order = _ordered_equal(expected, actual, key_indexes)
    if not in_order:
        return Comparison(False, "The rows are correct but not in the expected order.")
    return Comparison(True)


__all__ = [
    "Comparison",
    "canonical_rows",
    "canonical_value",
    "results_equivalent",
]
