"""
Solution verifier: runs a learner query and the task's reference query against
the same practice table and compares the results.

States: LOOKUP -> GUARD -> EXECUTE_CANDIDATE -> EXECUTE_REFERENCE -> COMPARE.

- LOOKUP fails with UnknownTask (client error).
- GUARD and EXECUTE_CANDIDATE failures are learner mistakes; they produce
  `correct=False` with a generic message, never raw database text.
- EXECUTE_REFERENCE failure is an engine defect: logged as CRITICAL and raised
  as ReferenceQueryError.
"""

from __future__ import annotations

from typing import Dict, Optional

import psycopg
from psycopg_pool import PoolTimeout

from sql_trainer.domain.errors import (
    InvalidQuery,
    ReferenceQueryError,
    UnknownTask,
    VerificationError,
)
from sql_trainer.domain.models import QueryResult, Task, VerificationResult
from sql_trainer.engine.comparison import results_equivalent
from sql_trainer.engine.guard import (
    GuardedQuery,
    guard_query,
    has_ordering,
    order_key_indexes,
    parse_single,
)
from sql_trainer.infrastructure.executor import QueryExecutor
from sql_trainer.infrastructure.task_store import TaskStore
from sql_trainer.utils.logging import get_logger

log = get_logger(__name__)

CORRECT_MESSAGE = "Correct! Your query returns the expected result."

# Learner-facing messages keyed by SQLSTATE.
_SQLSTATE_MESSAGES: Dict[str, str] = {
    "42601": "The query has a syntax error.",
    "42703": "The query references a column that does not exist.",
    "42702": "The query references an ambiguous column; qualify it with the table name.",
    "42P01": "The query references a table that does not exist.",
    "42883": "The query calls a function or operator that does not exist for these types.",
    "42803": "Every selected column must appear in GROUP BY or be used in an aggregate.",
    "42804": "The query mixes incompatible data types.",
    "22P02": "The query uses a value that does not match the column type.",
    "22012": "The query divides by zero.",
    "57014": "The query took too long and was cancelled.",
    "25006": "Only read-only queries are allowed.",
    "42501": "The query is not allowed to access that object.",
}
_GENERIC_MESSAGE = "The query could not be executed."


def learner_message(exc: psycopg.Error) -> str:
    """Map a database error to a message that is safe to show a learner."""
    return _SQLSTATE_MESSAGES.get(exc.sqlstate or "", _GENERIC_MESSAGE)


class Verifier:
    """
    Verifies candidate queries against stored tasks.

    Parameters
    ----------
    store : TaskStore
        Where composed tasks are looked up by id.
    executor : QueryExecutor
        Read-only query runner on the shared pool.
    statement_timeout_ms : int | None
        Default per-query timeout; `verify(timeout_ms=...)` overrides it.
    """

    def __init__(
        self,
        store: TaskStore,
        executor: QueryExecutor,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._store = store
        self._executor = executor
        self.statement_timeout_ms = statement_timeout_ms

    def _lookup(self, task_id: str) -> Task:
        try:
            task = self._store.get(task_id)
        except (psycopg.Error, PoolTimeout) as exc:
            log.error("[VERIFY FAILED] task store unavailable", extra={"task_id": task_id})
            raise VerificationError("Task store unavailable") from exc
        if task is None:
            raise UnknownTask(task_id)
        return task

    def _run_candidate(
        self, task: Task, guarded: GuardedQuery, timeout_ms: Optional[int]
    ) -> QueryResult:
        try:
            return self._executor.run(guarded.sql, timeout_ms=timeout_ms)
        except PoolTimeout as exc:
            raise VerificationError("No database connection available") from exc
        except psycopg.OperationalError as exc:
            if exc.sqlstate is None:
                # connection-level failure, not the learner's doing
                raise VerificationError("Backing store unavailable") from exc
            raise InvalidQuery(learner_message(exc)) from exc
        except psycopg.Error as exc:
            log.info(
                "[VERIFY] candidate query failed",
                extra={"task_id": task.id, "sqlstate": exc.sqlstate},
            )
            raise InvalidQuery(learner_message(exc)) from exc

    def _run_reference(self, task: Task, timeout_ms: Optional[int]) -> QueryResult:
        try:
            return self._executor.run(task.reference_query, timeout_ms=timeout_ms)
        except PoolTimeout as exc:
            raise VerificationError("No database connection available") from exc
        except psycopg.Error as exc:
            log.critical(
                "[VERIFY FAILED] reference query failed",
                extra={
                    "task_id": task.id,
                    "table": task.table_name,
                    "sqlstate": exc.sqlstate,
                    "error": str(exc),
                },
            )
            raise ReferenceQueryError(task.id, task.table_name) from exc

    def verify(
        self, task_id: str, candidate_query: str, timeout_ms: Optional[int] = None
    ) -> VerificationResult:
        """
        Verify `candidate_query` against the task's reference query.

        Raises
        ------
        UnknownTask
            If no task is stored under `task_id`.
        ReferenceQueryError
            If the reference query itself fails.
        VerificationError
            If the store is unreachable.
        """
        task = self._lookup(task_id)
        effective_timeout = timeout_ms if timeout_ms is not None else self.statement_timeout_ms

        try:
            guarded = guard_query(candidate_query, task.table_name, task.kind.value)
            candidate = self._run_candidate(task, guarded, effective_timeout)
        except InvalidQuery as exc:
            log.info("[VERIFY] rejected", extra={"task_id": task.id, "reason": str(exc)})
            return VerificationResult(correct=False, message=str(exc))

        reference = self._run_reference(task, effective_timeout)
        try:
            reference_tree = parse_single(task.reference_query)
        except InvalidQuery as exc:
            log.critical(
                "[VERIFY FAILED] reference query does not parse", extra={"task_id": task.id}
            )
            raise ReferenceQueryError(task.id, task.table_name) from exc

        reference_ordered = has_ordering(reference_tree)
        candidate_ordered = guarded.is_ordered
        if reference_ordered:
            keys = order_key_indexes(reference_tree, reference.columns)
        elif candidate_ordered:
            keys = order_key_indexes(guarded.tree, candidate.columns)
        else:
            keys = None

        outcome = results_equivalent(
            reference,
            candidate,
            ordered=reference_ordered or candidate_ordered,
            key_indexes=keys,
            keys_from_candidate=candidate_ordered and not reference_ordered,
        )
        log.info(
            "[VERIFY COMPLETE]",
            extra={"task_id": task.id, "correct": outcome.equivalent},
        )
        if outcome.equivalent:
            return VerificationResult(correct=True, message=CORRECT_MESSAGE)
        return VerificationResult(correct=False, message=outcome.reason)


__all__ = ["CORRECT_MESSAGE", "Verifier", "learner_message"]
