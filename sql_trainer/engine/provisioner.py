"""
Instance provisioner: creates and populates uniquely named practice tables.

The physical table name is the only value ever interpolated into SQL text. It is
generated here, never taken from input, validated against a strict identifier
pattern and still quoted through `psycopg.sql.Identifier`. Row values always
travel as bind parameters.
"""

from __future__ import annotations

import itertools
import random
import re
import threading
import time
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import sql
from psycopg_pool import ConnectionPool, PoolTimeout

from sql_trainer.domain.errors import ProvisionError
from sql_trainer.domain.models import ColumnSpec, LogicalType, TableArchetype, TableInstance
from sql_trainer.engine.generator import generate
from sql_trainer.engine.selection import ensure_rng
from sql_trainer.infrastructure.db_factory import apply_statement_timeout
from sql_trainer.utils.logging import get_logger

log = get_logger(__name__)

TABLE_NAME_PREFIX = "practice_"
TABLE_NAME_PATTERN = re.compile(r"^practice_[0-9a-z_]+$")
MAX_IDENTIFIER_LENGTH = 63  # PostgreSQL NAMEDATALEN - 1

_NATIVE_TYPES: Dict[LogicalType, str] = {
    LogicalType.IDENTIFIER: "SERIAL PRIMARY KEY",
    LogicalType.MONEY: "DECIMAL(10,2)",
    LogicalType.INTEGER: "INTEGER",
    LogicalType.BOUNDED_DECIMAL: "DECIMAL(3,2)",
    LogicalType.DATE: "DATE",
    LogicalType.TIMESTAMP: "TIMESTAMP",
}

_counter = itertools.count()
_counter_lock = threading.Lock()


def next_table_name() -> str:
    """Time-derived name, unique within the process thanks to the counter suffix."""
    with _counter_lock:
        seq = next(_counter)
    return f"{TABLE_NAME_PREFIX}{time.time_ns()}_{seq}"


def validate_table_name(name: str) -> str:
    """Return `name` if it is a safe practice-table identifier, else raise ValueError."""
    if len(name) > MAX_IDENTIFIER_LENGTH or TABLE_NAME_PATTERN.fullmatch(name) is None:
        raise ValueError(f"unsafe practice table name: {name!r}")
    return name


def native_type(column: ColumnSpec) -> str:
    """Map a logical column type to its PostgreSQL column type."""
    if column.logical_type is LogicalType.SHORT_TEXT:
        return f"VARCHAR({column.max_length})"
    return _NATIVE_TYPES[column.logical_type]


def _column_ddl(column: ColumnSpec) -> sql.Composable:
    parts = [sql.Identifier(column.name), sql.SQL(native_type(column))]
    if not column.nullable and column.logical_type is not LogicalType.IDENTIFIER:
        parts.append(sql.SQL("NOT NULL"))
    return sql.SQL(" ").join(parts)


def create_table_statement(table_name: str, archetype: TableArchetype) -> sql.Composed:
    return sql.SQL("CREATE TABLE {} ({})").format(
        sql.Identifier(table_name),
        sql.SQL(", ").join(_column_ddl(c) for c in archetype.columns),
    )


def insert_statement(table_name: str, archetype: TableArchetype) -> sql.Composed:
    names = [c.name for c in archetype.insertable_columns]
    return sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
        sql.Identifier(table_name),
        sql.SQL(", ").join(sql.Identifier(n) for n in names),
        sql.SQL(", ").join(sql.Placeholder() * len(names)),
    )


class Provisioner:
    """
    Creates one physical table per call and bulk-inserts generated rows.

    All work for one table runs in a single transaction on a pooled connection,
    bounded by a transaction-local statement timeout.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        rng: Optional[random.Random] = None,
        statement_timeout_ms: Optional[int] = None,
        acquire_timeout: Optional[float] = None,
    ) -> None:
        self._pool = pool
        self._rng = ensure_rng(rng)
        self.statement_timeout_ms = statement_timeout_ms
        self.acquire_timeout = acquire_timeout

    def provision(
        self, archetype: TableArchetype, n: int, timeout_ms: Optional[int] = None
    ) -> TableInstance:
        """
        Create a practice table for `archetype` holding `n` generated rows.

        Raises
        ------
        ProvisionError
            Naming the failing stage ("name", "acquire", "create", "insert" or
            "commit"). Partially created tables are left for external cleanup.
        """
        try:
            table_name = validate_table_name(next_table_name())
        except ValueError as exc:
            raise ProvisionError(str(exc), stage="name") from exc

        rows = generate(archetype, n, rng=self._rng)
        params: List[tuple[Any, ...]] = [
            tuple(row[c.name] for c in archetype.insertable_columns) for row in rows
        ]
        effective_timeout = timeout_ms if timeout_ms is not None else self.statement_timeout_ms

        log.debug(
            "[PROVISION START]",
            extra={"table": table_name, "kind": archetype.kind.value, "rows": n},
        )
        stage = "acquire"
        try:
            with self._pool.connection(timeout=self.acquire_timeout) as conn:
                with conn.cursor() as cur:
                    apply_statement_timeout(cur, effective_timeout)
                    stage = "create"
                    cur.execute(create_table_statement(table_name, archetype))
                    stage = "insert"
                    if params:
                        cur.executemany(insert_statement(table_name, archetype), params)
                stage = "commit"
        except PoolTimeout as exc:
            log.error("[PROVISION FAILED]", extra={"table": table_name, "stage": stage})
            raise ProvisionError(
                "no database connection available", stage=stage, table_name=table_name
            ) from exc
        except psycopg.Error as exc:
            log.error(
                "[PROVISION FAILED]",
                extra={"table": table_name, "stage": stage, "error": str(exc)},
            )
            raise ProvisionError(
                f"{type(exc).__name__}: {exc}", stage=stage, table_name=table_name
            ) from exc

        log.info(
            "[PROVISION SUCCESS]",
            extra={"table": table_name, "kind": archetype.kind.value, "rows": n},
        )
        return TableInstance(table_name=table_name, kind=archetype.kind, row_count=n)


__all__ = [
    "Provisioner",
    "create_table_statement",
    "insert_statement",
    "native_type",
    "next_table_name",
    "validate_table_name",
]
