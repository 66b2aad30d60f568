"""
Error taxonomy for the SQL Trainer engine.

Every engine failure derives from TrainerError so the boundary layers (HTTP, CLI)
can map whole families to responses:

- CatalogError: the fixed catalogs are inconsistent; fatal at startup.
- CompositionError / ProvisionError: compose() could not produce a task; a
  retryable service error, not the learner's fault.
- VerificationError and its subclasses: verify() failures. InvalidQuery never
  escapes verify(); it becomes an "incorrect" result.
"""

from __future__ import annotations

from typing import Optional


class TrainerError(Exception):
    """Base class for all engine errors."""


class CatalogError(TrainerError):
    """The archetype/template catalogs violate a consistency rule."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Catalog consistency check failed: " + "; ".join(self.problems))


class CompositionError(TrainerError):
    """A task could not be composed."""


class ProvisionError(CompositionError):
    """
    Creating or populating a practice table failed.

    Attributes
    ----------
    stage : str
        Which step failed: "name", "acquire", "create", "insert" or "commit".
    table_name : str | None
        Physical table involved, when one had been chosen.
    """

    def __init__(self, message: str, stage: str, table_name: Optional[str] = None) -> None:
        self.stage = stage
        self.table_name = table_name
        super().__init__(f"[{stage}] {message}" + (f" (table={table_name})" if table_name else ""))


class VerificationError(TrainerError):
    """verify() could not reach a verdict for reasons outside the learner's query."""


class UnknownTask(VerificationError):
    """No task is registered under the given id (never issued, or expired)."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Unknown task id: {task_id!r}")


class InvalidQuery(VerificationError):
    """
    The learner's query was rejected or failed to execute.

    The message is learner-facing and never carries raw backing-store text.
    """


class ReferenceQueryError(VerificationError):
    """The stored reference query failed to execute; an engine defect."""

    def __init__(self, task_id: str, table_name: str) -> None:
        self.task_id = task_id
        self.table_name = table_name
        super().__init__(f"Reference query for task {task_id!r} failed on table {table_name}")


__all__ = [
    "TrainerError",
    "CatalogError",
    "CompositionError",
    "ProvisionError",
    "VerificationError",
    "UnknownTask",
    "InvalidQuery",
    "ReferenceQueryError",
]
