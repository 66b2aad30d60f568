from __future__ import annotations

from types import SimpleNamespace

import pytest
from psycopg import errors

from sql_trainer.infrastructure.executor import PooledQueryExecutor
from sql_trainer.infrastructure.introspection import schema_of
from tests.fakes import FakeCursor, FakePool

TIMEOUT_MS = 2000


class _DescribingCursor(FakeCursor):
    def execute(self, query, params=None):
        super().execute(query, params)
        if query.startswith("SELECT name"):
            self.description = [SimpleNamespace(name="name"), SimpleNamespace(name="rating")]
        return self


def _pool_with_rows(rows) -> FakePool:
    pool = FakePool()
    pool.conn.rows = rows
    pool.conn.cursor = lambda: _DescribingCursor(pool.conn)
    return pool


def test_query_runs_read_only_with_timeout_and_is_rolled_back() -> None:
    pool = _pool_with_rows([("Laptop", 4.5)])
    result = PooledQueryExecutor(pool).run("SELECT name, rating FROM t", timeout_ms=TIMEOUT_MS)

    assert result.columns == ["name", "rating"]
    assert result.rows == [("Laptop", 4.5)]
    statements = [query for query, _ in pool.conn.executed]
    assert statements[0] == "SET TRANSACTION READ ONLY"
    assert "set_config" in statements[1]
    assert statements[2] == "SELECT name, rating FROM t"
    assert pool.conn.rollbacks == 1


def test_failed_query_is_still_rolled_back() -> None:
    pool = FakePool()
    pool.conn.fail_on = lambda query: query.startswith("SELECT *")
    pool.conn.error = errors.ReadOnlySqlTransaction("read-only")

    with pytest.raises(errors.ReadOnlySqlTransaction):
        PooledQueryExecutor(pool).run("SELECT * FROM t")
    assert pool.conn.rollbacks == 1


def test_schema_of_maps_information_schema_rows() -> None:
    pool = FakePool()
    pool.conn.rows = [("id", "integer", "NO"), ("rating", "numeric", "YES")]

    columns = schema_of(pool, "practice_1_0")

    assert [(c.name, c.type, c.nullable) for c in columns] == [
        ("id", "integer", False),
        ("rating", "numeric", True),
    ]
    assert pool.conn.executed[0][1] == ("practice_1_0",)
