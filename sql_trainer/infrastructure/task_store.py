"""
Task lookup store: maps task ids to composed tasks for later verification.

Two implementations share the TaskStore protocol:

- InMemoryTaskStore: a lock-guarded dict; tasks vanish with the process.
- PostgresTaskStore: a `trainer_tasks` table on the shared pool; required when
  the process may restart between compose and verify.

Keys are unique by construction, so `put` rejects an existing id instead of
overwriting it.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from psycopg_pool import ConnectionPool

from sql_trainer.domain.models import Task


@runtime_checkable
class TaskStore(Protocol):
    def ensure_schema(self) -> None:
        """Create backing structures if needed (no-op for in-memory stores)."""
        ...

    def put(self, task: Task) -> None:
        """Store a task. Raises ValueError if the id is already present."""
        ...

    def get(self, task_id: str) -> Optional[Task]:
        """Return the task for `task_id`, or None."""
        ...


class InMemoryTaskStore:
    """Process-local TaskStore safe for concurrent composers and verifiers."""

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}
        self._lock = threading.Lock()

    def ensure_schema(self) -> None:
        return None

    def put(self, task: Task) -> None:
        with self._lock:
            if task.id in self._tasks:
                raise ValueError(f"task id already stored: {task.id}")
            self._tasks[task.id] = task

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)


_CREATE_SQL = """
    CREATE TABLE IF NOT EXISTS trainer_tasks (
        id TEXT PRIMARY KEY,
        description TEXT NOT NULL,
        table_name TEXT NOT NULL,
        kind TEXT NOT NULL,
        template_key TEXT NOT NULL,
        difficulty TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        reference_query TEXT NOT NULL
    )
"""

_INSERT_SQL = """
    INSERT INTO trainer_tasks
        (id, description, table_name, kind, template_key, difficulty, created_at, reference_query)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
    ON CONFLICT (id) DO NOTHING
"""

_SELECT_SQL = """
    SELECT id, description, table_name, kind, template_key, difficulty, created_at,
           reference_query
    FROM trainer_tasks
    WHERE id = %s
"""


class PostgresTaskStore:
    """TaskStore persisted in the backing PostgreSQL database."""

    def __init__(self, pool: ConnectionPool, acquire_timeout: Optional[float] = None) -> None:
        self._pool = pool
        self.acquire_timeout = acquire_timeout

    def ensure_schema(self) -> None:
        with self._pool.connection(timeout=self.acquire_timeout) as conn:
            conn.execute(_CREATE_SQL)

    def put(self, task: Task) -> None:
        with self._pool.connection(timeout=self.acquire_timeout) as conn:
            cur = conn.execute(
                _INSERT_SQL,
                (
                    task.id,
                    task.description,
                    task.table_name,
                    task.kind.value,
                    task.template_key,
                    task.difficulty.value,
                    task.created_at,
                    task.reference_query,
                ),
            )
            if cur.rowcount == 0:
                raise ValueError(f"task id already stored: {task.id}")

    def get(self, task_id: str) -> Optional[Task]:
        with self._pool.connection(timeout=self.acquire_timeout) as conn:
            row = conn.execute(_SELECT_SQL, (task_id,)).fetchone()
        if row is None:
            return None
        keys = (
            "id",
            "description",
            "table_name",
            "kind",
            "template_key",
            "difficulty",
            "created_at",
            "reference_query",
        )
        return Task(**dict(zip(keys, row)))


__all__ = ["InMemoryTaskStore", "PostgresTaskStore", "TaskStore"]
