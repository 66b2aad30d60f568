"""
Read-only query execution on the shared connection pool.

Every query runs inside its own transaction opened with `SET TRANSACTION READ
ONLY` and a transaction-local statement timeout; the transaction is always
rolled back, so nothing a query does can persist.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from psycopg_pool import ConnectionPool

from sql_trainer.domain.models import QueryResult
from sql_trainer.infrastructure.db_factory import apply_statement_timeout


@runtime_checkable
class QueryExecutor(Protocol):
    """Runs one read-only query and returns its columns and rows."""

    def run(self, query: str, timeout_ms: Optional[int] = None) -> QueryResult:
        """
        Raises
        ------
        psycopg.Error
            If the query fails to execute (including statement timeouts).
        psycopg_pool.PoolTimeout
            If no connection becomes available in time.
        """
        ...


class PooledQueryExecutor:
    """QueryExecutor backed by a psycopg ConnectionPool."""

    def __init__(self, pool: ConnectionPool, acquire_timeout: Optional[float] = None) -> None:
        self._pool = pool
        self.acquire_timeout = acquire_timeout

    def run(self, query: str, timeout_ms: Optional[int] = None) -> QueryResult:
        with self._pool.connection(timeout=self.acquire_timeout) as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute("SET TRANSACTION READ ONLY")
                    apply_statement_timeout(cur, timeout_ms)
                    # No parameters: psycopg sends the text as-is, '%' included.
                    cur.execute(query)
                    if cur.description is None:
                        return QueryResult(columns=[], rows=[])
                    columns = [d.name for d in cur.description]
                    rows = cur.fetchall()
            finally:
                conn.rollback()
        return QueryResult(columns=columns, rows=rows)


__all__ = ["PooledQueryExecutor", "QueryExecutor"]
