from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sql_trainer.domain.models import QueryResult
from sql_trainer.engine.comparison import canonical_value, results_equivalent


def _result(rows, columns=("a", "b")) -> QueryResult:
    return QueryResult(columns=list(columns), rows=[tuple(r) for r in rows])


class TestCanonicalValue:
    def test_numbers_of_different_types_compare_equal(self) -> None:
        assert canonical_value(4) == canonical_value(Decimal("4.00")) == canonical_value(4.0)
        assert canonical_value(Decimal("3.70")) == canonical_value(3.7)

    def test_numbers_are_rounded_to_six_places(self) -> None:
        assert canonical_value(Decimal("1.0000001")) == canonical_value(Decimal("1"))
        assert canonical_value(Decimal("1.00001")) != canonical_value(Decimal("1"))

    def test_aware_datetimes_normalize_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        assert canonical_value(datetime(2024, 1, 1, 14, 30, tzinfo=plus_two)) == canonical_value(
            datetime(2024, 1, 1, 12, 30)
        )

    def test_midnight_datetime_equals_date(self) -> None:
        assert canonical_value(datetime(2024, 1, 1)) == canonical_value(date(2024, 1, 1))

    def test_none_and_strings_pass_through(self) -> None:
        assert canonical_value(None) is None
        assert canonical_value("Laptop") == "Laptop"
        assert canonical_value(True) is True


class TestUnordered:
    def test_same_rows_in_other_order_are_equivalent(self) -> None:
        reference = _result([(1, "x"), (2, "y"), (2, "y")])
        candidate = _result([(2, "y"), (1, "x"), (2, "y")])
        assert results_equivalent(reference, candidate).equivalent

    def test_column_names_are_ignored(self) -> None:
        reference = _result([(1, "x")], columns=("count", "name"))
        candidate = _result([(1, "x")], columns=("n", "label"))
        assert results_equivalent(reference, candidate).equivalent

    def test_arity_mismatch(self) -> None:
        outcome = results_equivalent(
            _result([(1, "x")]), _result([(1,)], columns=("a",))
        )
        assert not outcome.equivalent
        assert outcome.reason == "Expected 2 column(s), got 1."

    def test_row_count_mismatch(self) -> None:
        outcome = results_equivalent(_result([(1, "x"), (2, "y")]), _result([(1, "x")]))
        assert outcome.reason == "Expected 2 row(s), got 1."

    def test_multiset_counts_matter(self) -> None:
        outcome = results_equivalent(
            _result([(1, "x"), (1, "x"), (2, "y")]), _result([(1, "x"), (2, "y"), (2, "y")])
        )
        assert outcome.reason == "The returned rows do not match the expected result."

    def test_empty_results_are_equivalent(self) -> None:
        assert results_equivalent(_result([]), _result([])).equivalent


class TestOrdered:
    def test_wrong_order_is_reported(self) -> None:
        reference = _result([(3, "c"), (2, "b"), (1, "a")])
        candidate = _result([(1, "a"), (2, "b"), (3, "c")])
        outcome = results_equivalent(reference, candidate, ordered=True, key_indexes=[0])
        assert outcome.reason == "The rows are correct but not in the expected order."

    def test_ties_on_sort_key_may_come_in_any_order(self) -> None:
        reference = _result([(5, "a"), (5, "b"), (3, "c")])
        candidate = _result([(5, "b"), (5, "a"), (3, "c")])
        assert results_equivalent(reference, candidate, ordered=True, key_indexes=[0]).equivalent

    def test_without_keys_the_exact_sequence_is_required(self) -> None:
        reference = _result([(5, "a"), (5, "b")])
        candidate = _result([(5, "b"), (5, "a")])
        outcome = results_equivalent(reference, candidate, ordered=True, key_indexes=None)
        assert not outcome.equivalent

    def test_tie_groups_from_candidate_keys(self) -> None:
        reference = _result([(5, "b"), (3, "c"), (5, "a")])
        candidate = _result([(5, "a"), (5, "b"), (3, "c")])
        outcome = results_equivalent(
            reference, candidate, ordered=True, key_indexes=[0], keys_from_candidate=True
        )
        assert not outcome.equivalent

        reordered = _result([(5, "b"), (5, "a"), (3, "c")])
        assert results_equivalent(
            reordered, candidate, ordered=True, key_indexes=[0], keys_from_candidate=True
        ).equivalent
