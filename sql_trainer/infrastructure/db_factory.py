"""
Database connection factory utilities for the SQL Trainer.

Builds the shared psycopg ConnectionPool that the provisioner, the query
executor, schema introspection and the PostgreSQL task store all draw from. The
pool is created by the process entry point and injected into those collaborators;
there is no module-level pool.

Includes retry logic for the startup reachability probe using tenacity. Request
paths never retry: transient errors surface to the caller.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Cursor
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from sql_trainer.config import Settings, get_settings
from sql_trainer.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def create_pool(settings: Optional[Settings] = None, dsn: Optional[str] = None) -> ConnectionPool:
    """
    Create (but do not open) the bounded connection pool.

    Parameters
    ----------
    settings : Settings | None
        Source of pool bounds and connection parameters.
    dsn : str | None
        Optional DSN override (tests, scripts).

    Returns
    -------
    ConnectionPool
        A closed pool; call `pool.open()` (or `TrainerService.start()`).
    """
    settings = settings or get_settings()
    return ConnectionPool(
        conninfo=dsn or build_dsn(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_pool_timeout,
        open=False,
        name="sql-trainer",
    )


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, PoolTimeout)),
    reraise=True,
)
def wait_for_store(pool: ConnectionPool, timeout: float = 5.0) -> None:
    """
    Block until the backing store answers `SELECT 1`.

    Retries up to 5 times with exponential backoff for transient connection errors.

    Raises
    ------
    psycopg.OperationalError | PoolTimeout
        If the store is still unreachable after all retry attempts.
    """
    with pool.connection(timeout=timeout) as conn:
        conn.execute("SELECT 1")
    log.info("Backing store reachable", extra={"pool": pool.name})


def apply_statement_timeout(cur: Cursor, timeout_ms: Optional[int]) -> None:
    """
    Bound every statement of the current transaction to `timeout_ms`.

    Uses `set_config(..., is_local => true)` so the setting dies with the
    transaction and never leaks into the next pool checkout. A value of None or
    0 leaves the server default in place.
    """
    if not timeout_ms:
        return
    cur.execute("SELECT set_config('statement_timeout', %s, true)", (f"{int(timeout_ms)}ms",))


__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
    "wait_for_store",
]
