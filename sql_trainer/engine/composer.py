"""
Task composer: turns a template and a freshly provisioned table into a Task.
"""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Union

import psycopg
from psycopg_pool import PoolTimeout

from sql_trainer.catalog.archetypes import archetype
from sql_trainer.catalog.templates import compatible_templates, kinds_with_templates
from sql_trainer.domain.errors import CompositionError
from sql_trainer.domain.models import TableKind, Task, TaskTemplate
from sql_trainer.engine.provisioner import Provisioner
from sql_trainer.engine.selection import choose_uniform, ensure_rng
from sql_trainer.infrastructure.task_store import TaskStore
from sql_trainer.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_ROW_COUNT = 50


def new_task_id() -> str:
    return f"task_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Composer:
    """
    Composes practice tasks.

    Steps per call: choose an archetype, provision a table for it, choose a
    compatible template, draw the template parameter, render the description and
    the reference query with the same parameter text, assign an id and register
    the task in the lookup store.
    """

    def __init__(
        self,
        provisioner: Provisioner,
        store: TaskStore,
        rng: Optional[random.Random] = None,
        row_count: int = DEFAULT_ROW_COUNT,
        id_factory: Callable[[], str] = new_task_id,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._provisioner = provisioner
        self._store = store
        self._rng = ensure_rng(rng)
        self.row_count = row_count
        self._new_id = id_factory
        self._clock = clock

    def _choose_kind(self, kind: Optional[Union[TableKind, str]]) -> TableKind:
        available = kinds_with_templates()
        if kind is None:
            return choose_uniform(self._rng, available)
        try:
            chosen = TableKind(kind)
        except ValueError as exc:
            raise ValueError(f"Unknown table kind: {kind!r}") from exc
        if chosen not in available:
            raise ValueError(f"No task templates registered for {chosen.value!r}")
        return chosen

    def _choose_template(self, kind: TableKind, template_key: Optional[str]) -> TaskTemplate:
        candidates = compatible_templates(kind)
        if template_key is None:
            return choose_uniform(self._rng, candidates)
        for candidate in candidates:
            if candidate.key == template_key:
                return candidate
        raise ValueError(f"Template {template_key!r} does not apply to {kind.value!r}")

    def compose(
        self,
        kind: Optional[Union[TableKind, str]] = None,
        template_key: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> Task:
        """
        Compose one task.

        Parameters
        ----------
        kind : TableKind | str | None
            Restrict to one archetype; uniform among archetypes with templates
            when omitted.
        template_key : str | None
            Force a specific template; it must belong to the chosen archetype.
        timeout_ms : int | None
            Statement timeout for provisioning, overriding the provisioner default.

        Raises
        ------
        ValueError
            For unknown kinds or templates that do not apply to the kind.
        CompositionError
            As ProvisionError when the practice table cannot be created, or when
            the task cannot be registered.
        """
        chosen_kind = self._choose_kind(kind)
        chosen_template = self._choose_template(chosen_kind, template_key)
        log.info(
            "[COMPOSE START]",
            extra={"kind": chosen_kind.value, "template": chosen_template.key},
        )

        instance = self._provisioner.provision(
            archetype(chosen_kind), self.row_count, timeout_ms=timeout_ms
        )

        value = chosen_template.parameter.draw(self._rng)
        description, reference_query = chosen_template.render(instance.table_name, value)
        task = Task(
            id=self._new_id(),
            description=description,
            table_name=instance.table_name,
            kind=chosen_kind,
            template_key=chosen_template.key,
            difficulty=chosen_template.difficulty,
            created_at=self._clock(),
            reference_query=reference_query,
        )
        try:
            self._store.put(task)
        except ValueError as exc:
            raise CompositionError(str(exc)) from exc
        except (psycopg.Error, PoolTimeout) as exc:
            log.error("[COMPOSE FAILED] task store unavailable", extra={"task_id": task.id})
            raise CompositionError(f"Could not register task: {type(exc).__name__}") from exc

        log.info(
            "[COMPOSE SUCCESS]",
            extra={
                "task_id": task.id,
                "table": task.table_name,
                "template": task.template_key,
                "difficulty": task.difficulty.value,
            },
        )
        return task


__all__ = ["Composer", "DEFAULT_ROW_COUNT", "new_task_id"]
