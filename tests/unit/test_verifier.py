from __future__ import annotations

from decimal import Decimal

import psycopg
import pytest
from psycopg import errors
from psycopg_pool import PoolTimeout

from sql_trainer.domain.errors import ReferenceQueryError, UnknownTask, VerificationError
from sql_trainer.domain.models import QueryResult, TableKind
from sql_trainer.engine.verifier import CORRECT_MESSAGE, Verifier, learner_message
from sql_trainer.infrastructure.task_store import InMemoryTaskStore
from tests.fakes import FakeExecutor, make_task

COLUMNS = ["id", "name", "rating"]
EXPECTED = QueryResult(
    columns=COLUMNS,
    rows=[(3, "Camera", Decimal("4.90")), (1, "Laptop", Decimal("4.10"))],
)


@pytest.fixture
def task():
    return make_task()


@pytest.fixture
def store(task) -> InMemoryTaskStore:
    store = InMemoryTaskStore()
    store.put(task)
    return store


def _executor_returning(task, candidate) -> FakeExecutor:
    def handler(query: str) -> QueryResult:
        if query == task.reference_query:
            return EXPECTED
        if isinstance(candidate, Exception):
            raise candidate
        return candidate

    return FakeExecutor(handler=handler)


def test_unknown_task_id_raises(store) -> None:
    verifier = Verifier(store, FakeExecutor())
    with pytest.raises(UnknownTask):
        verifier.verify("task_missing", "SELECT 1")


def test_reference_query_is_its_own_solution(task, store) -> None:
    verifier = Verifier(store, _executor_returning(task, EXPECTED))
    result = verifier.verify(task.id, task.reference_query)
    assert result.correct
    assert result.message == CORRECT_MESSAGE


def test_alias_query_is_bound_to_the_task_table(task, store) -> None:
    executor = _executor_returning(task, EXPECTED)
    result = Verifier(store, executor).verify(
        task.id, "select *\n  from products\n where rating > 3.7 order by rating desc"
    )
    assert result.correct
    assert task.table_name in executor.calls[0]
    assert executor.calls[1] == task.reference_query


def test_destructive_query_is_rejected_without_execution(task, store) -> None:
    executor = FakeExecutor()
    result = Verifier(store, executor).verify(task.id, f"DROP TABLE {task.table_name}")
    assert not result.correct
    assert result.message
    assert executor.calls == []


def test_dropped_filter_returns_incorrect(task, store) -> None:
    everything = QueryResult(
        columns=COLUMNS, rows=EXPECTED.rows + [(2, "Watch", Decimal("2.50"))]
    )
    result = Verifier(store, _executor_returning(task, everything)).verify(
        task.id, "SELECT * FROM products ORDER BY rating DESC"
    )
    assert not result.correct
    assert result.message == "Expected 2 row(s), got 3."


def test_wrong_order_returns_incorrect(task, store) -> None:
    reversed_rows = QueryResult(columns=COLUMNS, rows=list(reversed(EXPECTED.rows)))
    result = Verifier(store, _executor_returning(task, reversed_rows)).verify(
        task.id, "SELECT * FROM products WHERE rating > 3.7 ORDER BY rating"
    )
    assert not result.correct
    assert "order" in result.message


def test_candidate_only_ordering_is_compared_against_reference_row_order() -> None:
    # The reference has no ORDER BY, so its row order is whatever the server
    # returns. A sorted candidate only matches when that order happens to agree.
    reference_query = "SELECT * FROM practice_2_0 WHERE quantity >= 12"
    candidate_query = "SELECT * FROM practice_2_0 WHERE quantity >= 12 ORDER BY quantity"
    task = make_task(
        kind=TableKind.ORDERS,
        table_name="practice_2_0",
        reference_query=reference_query,
        template_key="orders_min_quantity",
    )
    store = InMemoryTaskStore()
    store.put(task)
    sorted_rows = QueryResult(columns=["id", "quantity"], rows=[(2, 12), (1, 14), (3, 15)])
    heap_rows = QueryResult(columns=["id", "quantity"], rows=[(1, 14), (2, 12), (3, 15)])

    stored_order = FakeExecutor({reference_query: heap_rows, candidate_query: sorted_rows})
    result = Verifier(store, stored_order).verify(task.id, candidate_query)
    assert not result.correct
    assert result.message == "The rows are correct but not in the expected order."

    same_order = FakeExecutor({reference_query: sorted_rows, candidate_query: sorted_rows})
    assert Verifier(store, same_order).verify(task.id, candidate_query).correct


def test_candidate_error_is_mapped_to_a_safe_message(task, store) -> None:
    executor = _executor_returning(task, errors.UndefinedColumn('column "ratng" does not exist'))
    result = Verifier(store, executor).verify(task.id, "SELECT ratng FROM products")
    assert not result.correct
    assert result.message == "The query references a column that does not exist."
    assert "ratng" not in result.message
    assert len(executor.calls) == 1


def test_statement_timeout_is_a_learner_error(task, store) -> None:
    executor = _executor_returning(task, errors.QueryCanceled("canceling statement"))
    result = Verifier(store, executor).verify(task.id, "SELECT * FROM products")
    assert not result.correct
    assert result.message == learner_message(errors.QueryCanceled())


def test_reference_failure_raises_reference_query_error(task, store) -> None:
    def handler(query: str) -> QueryResult:
        if query == task.reference_query:
            raise errors.UndefinedTable("relation does not exist")
        return EXPECTED

    with pytest.raises(ReferenceQueryError) as excinfo:
        Verifier(store, FakeExecutor(handler=handler)).verify(task.id, "SELECT * FROM products")
    assert excinfo.value.table_name == task.table_name


def test_pool_exhaustion_is_a_service_error(task, store) -> None:
    executor = _executor_returning(task, PoolTimeout("no connection"))
    with pytest.raises(VerificationError):
        Verifier(store, executor).verify(task.id, "SELECT * FROM products")


def test_unreachable_store_is_a_service_error(task) -> None:
    class _BrokenStore(InMemoryTaskStore):
        def get(self, task_id):
            raise psycopg.OperationalError("connection refused")

    with pytest.raises(VerificationError):
        Verifier(_BrokenStore(), FakeExecutor()).verify(task.id, "SELECT 1")


def test_unknown_sqlstate_gets_generic_message() -> None:
    assert learner_message(psycopg.DatabaseError("weird")) == "The query could not be executed."
