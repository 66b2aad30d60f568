"""
TrainerService: the engine facade consumed by the HTTP and CLI boundaries.

Owns the lifecycle of the shared connection pool and wires the provisioner,
composer, verifier and task store around it.

Usage:
    from sql_trainer.service import TrainerService

    with TrainerService.from_settings() as service:
        task = service.compose()
        print(task.to_view().description)
        print(service.verify(task.id, "SELECT ...").correct)
"""

from __future__ import annotations

import random
from typing import List, Optional, Union

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from sql_trainer.catalog.consistency import check_catalog
from sql_trainer.config import Settings, get_settings
from sql_trainer.domain.errors import UnknownTask
from sql_trainer.domain.models import SchemaColumn, TableKind, Task, VerificationResult
from sql_trainer.engine.composer import Composer
from sql_trainer.engine.provisioner import Provisioner
from sql_trainer.engine.verifier import Verifier
from sql_trainer.infrastructure.db_factory import create_pool, wait_for_store
from sql_trainer.infrastructure.executor import PooledQueryExecutor
from sql_trainer.infrastructure.introspection import schema_of
from sql_trainer.infrastructure.task_store import (
    InMemoryTaskStore,
    PostgresTaskStore,
    TaskStore,
)
from sql_trainer.utils.logging import get_logger

log = get_logger(__name__)


class TrainerService:
    """
    Stateless-per-request engine facade around one shared connection pool.

    Parameters
    ----------
    pool : ConnectionPool
        Shared bounded pool; opened by `start()` and closed by `close()`.
    store : TaskStore
        Lookup store for composed tasks.
    settings : Settings | None
        Timeouts and row counts; defaults to `get_settings()`.
    rng : random.Random | None
        Random source shared by the provisioner and composer (tests inject a
        seeded one).
    """

    def __init__(
        self,
        pool: ConnectionPool,
        store: TaskStore,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.pool = pool
        self.store = store
        rng = rng or random.Random()
        acquire_timeout = self.settings.db_pool_timeout
        timeout_ms = self.settings.db_statement_timeout_ms

        self.provisioner = Provisioner(
            pool, rng=rng, statement_timeout_ms=timeout_ms, acquire_timeout=acquire_timeout
        )
        self.composer = Composer(
            self.provisioner, store, rng=rng, row_count=self.settings.task_row_count
        )
        self.verifier = Verifier(
            store,
            PooledQueryExecutor(pool, acquire_timeout=acquire_timeout),
            statement_timeout_ms=timeout_ms,
        )

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, dsn: Optional[str] = None
    ) -> "TrainerService":
        """Build a service with a new pool and the task store named by TASK_STORE."""
        settings = settings or get_settings()
        pool = create_pool(settings, dsn=dsn)
        store: TaskStore
        if settings.task_store == "postgres":
            store = PostgresTaskStore(pool, acquire_timeout=settings.db_pool_timeout)
        else:
            store = InMemoryTaskStore()
        return cls(pool, store, settings=settings)

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> "TrainerService":
        """
        Validate the catalogs, open the pool and prepare the task store.

        Raises
        ------
        CatalogError
            If the catalogs are inconsistent; the process must not serve.
        psycopg.OperationalError | PoolTimeout
            If the store stays unreachable after the startup retries.
        """
        check_catalog()
        self.pool.open()
        wait_for_store(self.pool, timeout=self.settings.db_pool_timeout)
        self.store.ensure_schema()
        log.info(
            "[SERVICE START]",
            extra={"task_store": type(self.store).__name__, "pool_max": self.pool.max_size},
        )
        return self

    def close(self) -> None:
        self.pool.close()
        log.info("[SERVICE STOP]")

    def __enter__(self) -> "TrainerService":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- operations ----------------------------------------------------------

    def compose(
        self,
        kind: Optional[Union[TableKind, str]] = None,
        template_key: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> Task:
        return self.composer.compose(kind=kind, template_key=template_key, timeout_ms=timeout_ms)

    def verify(
        self, task_id: str, query: str, timeout_ms: Optional[int] = None
    ) -> VerificationResult:
        return self.verifier.verify(task_id, query, timeout_ms=timeout_ms)

    def schema_of(self, table_name: str) -> List[SchemaColumn]:
        return schema_of(self.pool, table_name, acquire_timeout=self.settings.db_pool_timeout)

    def task(self, task_id: str) -> Task:
        """Return a stored task or raise UnknownTask."""
        task = self.store.get(task_id)
        if task is None:
            raise UnknownTask(task_id)
        return task

    def task_schema(self, task_id: str) -> List[SchemaColumn]:
        """
        Schema hint for a task's table without revealing its physical name.

        Raises UnknownTask if the task is not stored or its table is gone.
        """
        columns = self.schema_of(self.task(task_id).table_name)
        if not columns:
            raise UnknownTask(task_id)
        return columns

    def healthy(self) -> bool:
        try:
            with self.pool.connection(timeout=self.settings.db_pool_timeout) as conn:
                conn.execute("SELECT 1")
        except (psycopg.Error, PoolTimeout):
            log.warning("[HEALTH] backing store unreachable", exc_info=True)
            return False
        return True


__all__ = ["TrainerService"]
