"""
SQL Trainer - practice-task generation and verification engine for SQL learners.

Each task is bound to a freshly provisioned PostgreSQL table filled with
synthetic rows. The engine composes a natural-language task and a reference
query from a fixed template catalog, and verifies a learner's query by running
both against the same table and comparing the results.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from sql_trainer.config import Settings, get_settings
from sql_trainer.domain.errors import (
    CatalogError,
    CompositionError,
    InvalidQuery,
    ProvisionError,
    ReferenceQueryError,
    TrainerError,
    UnknownTask,
    VerificationError,
)
from sql_trainer.domain.models import Task, TaskView, VerificationResult
from sql_trainer.service import TrainerService
from sql_trainer.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Service
    "TrainerService",
    "Task",
    "TaskView",
    "VerificationResult",
    # Errors
    "TrainerError",
    "CatalogError",
    "CompositionError",
    "ProvisionError",
    "VerificationError",
    "UnknownTask",
    "InvalidQuery",
    "ReferenceQueryError",
    # Logging
    "configure_logging",
    "get_logger",
]
