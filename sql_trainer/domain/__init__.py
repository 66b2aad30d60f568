"""
Domain package for the SQL Trainer.

Exports the catalog shapes, engine outputs and the error taxonomy shared by the
engine, the infrastructure layer and the HTTP/CLI boundaries.
"""

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
from sql_trainer.domain.models import (
    ColumnSpec,
    DecimalRange,
    Difficulty,
    IntRange,
    LogicalType,
    NoParam,
    QueryResult,
    SchemaColumn,
    TableArchetype,
    TableInstance,
    TableKind,
    Task,
    TaskTemplate,
    TaskView,
    VerificationResult,
)

__all__ = [
    # Models
    "ColumnSpec",
    "DecimalRange",
    "Difficulty",
    "IntRange",
    "LogicalType",
    "NoParam",
    "QueryResult",
    "SchemaColumn",
    "TableArchetype",
    "TableInstance",
    "TableKind",
    "Task",
    "TaskTemplate",
    "TaskView",
    "VerificationResult",
    # Errors
    "CatalogError",
    "CompositionError",
    "InvalidQuery",
    "ProvisionError",
    "ReferenceQueryError",
    "TrainerError",
    "UnknownTask",
    "VerificationError",
]
