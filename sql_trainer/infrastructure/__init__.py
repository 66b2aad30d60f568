"""
Infrastructure package for the SQL Trainer.

Centralizes database concerns: the shared connection pool, read-only query
execution, schema introspection and the task lookup stores. Keep this layer
focused on I/O and resource management, decoupled from engine logic.
"""

from sql_trainer.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    create_pool,
    wait_for_store,
)
from sql_trainer.infrastructure.executor import PooledQueryExecutor, QueryExecutor
from sql_trainer.infrastructure.introspection import schema_of
from sql_trainer.infrastructure.task_store import (
    InMemoryTaskStore,
    PostgresTaskStore,
    TaskStore,
)

__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
    "wait_for_store",
    "PooledQueryExecutor",
    "QueryExecutor",
    "schema_of",
    "InMemoryTaskStore",
    "PostgresTaskStore",
    "TaskStore",
]
