"""
Schema introspection through PostgreSQL's information_schema.

Backed by the store's own catalog rather than engine bookkeeping, so the result
also reflects store-level details (serial defaults, nullability constraints).
"""

from __future__ import annotations

from typing import List, Optional

from psycopg_pool import ConnectionPool

from sql_trainer.domain.models import SchemaColumn

_SCHEMA_SQL = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = current_schema()
      AND table_name = %s
    ORDER BY ordinal_position
"""


def schema_of(
    pool: ConnectionPool, table_name: str, acquire_timeout: Optional[float] = None
) -> List[SchemaColumn]:
    """
    Return the columns of `table_name` in ordinal order.

    An unknown table yields an empty list. The name is a bind parameter, so any
    string is safe to pass.
    """
    with pool.connection(timeout=acquire_timeout) as conn:
        with conn.cursor() as cur:
            cur.execute(_SCHEMA_SQL, (table_name,))
            rows = cur.fetchall()
    return [
        SchemaColumn(name=name, type=data_type, nullable=is_nullable == "YES")
        for name, data_type, is_nullable in rows
    ]


__all__ = ["schema_of"]
