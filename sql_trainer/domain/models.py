"""
Domain models for the SQL Trainer.

Defines the immutable catalog shapes (column specs, table archetypes, task
templates with their parameter kinds) and the values the engine hands out
(table instances, tasks, verification results, introspected schema columns).
"""
from __future__ import annotations

import random
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, FrozenSet, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


class LogicalType(str, Enum):
    IDENTIFIER = "identifier"
    SHORT_TEXT = "short_text"
    MONEY = "money"
    INTEGER = "integer"
    BOUNDED_DECIMAL = "bounded_decimal"
    DATE = "date"
    TIMESTAMP = "timestamp"


class TableKind(str, Enum):
    """Table archetypes. The value doubles as the alias learners query by."""

    EMPLOYEES = "employees"
    PRODUCTS = "products"
    ORDERS = "orders"
    CUSTOMERS = "customers"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ColumnSpec(BaseModel):
    """
    One column of a table archetype.
    """

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    logical_type: LogicalType
    nullable: bool = False
    max_length: int = Field(50, gt=0, description="VARCHAR length for short_text columns.")

    model_config = {"frozen": True}


class TableArchetype(BaseModel):
    """
    A named table shape used as a blueprint for generated instances.
    """

    kind: TableKind
    columns: Tuple[ColumnSpec, ...]

    model_config = {"frozen": True}

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def insertable_columns(self) -> Tuple[ColumnSpec, ...]:
        """Columns a generator must fill; the identifier is assigned by the store."""
        return tuple(c for c in self.columns if c.logical_type is not LogicalType.IDENTIFIER)

    @property
    def identifier(self) -> ColumnSpec:
        return next(c for c in self.columns if c.logical_type is LogicalType.IDENTIFIER)


class TableInstance(BaseModel):
    """
    One physical practice table created from an archetype.
    """

    table_name: str = Field(..., pattern=r"^practice_[0-9a-z_]+$", max_length=63)
    kind: TableKind
    row_count: int = Field(..., ge=0)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Template parameter kinds
# ---------------------------------------------------------------------------


class NoParam(BaseModel):
    kind: Literal["none"] = "none"

    model_config = {"frozen": True}

    def draw(self, rng: random.Random) -> None:
        return None

    def render(self, value: Any) -> str:
        return ""


class IntRange(BaseModel):
    """Integer parameter drawn uniformly from the closed range [lo, hi]."""

    kind: Literal["int_range"] = "int_range"
    lo: int
    hi: int

    model_config = {"frozen": True}

    def draw(self, rng: random.Random) -> int:
        return rng.randint(self.lo, self.hi)

    def render(self, value: Any) -> str:
        return str(int(value))


class DecimalRange(BaseModel):
    """Decimal parameter drawn uniformly from [lo, hi) on a 10**-places grid."""

    kind: Literal["decimal_range"] = "decimal_range"
    lo: Decimal
    hi: Decimal
    places: int = Field(1, ge=0, le=6)

    model_config = {"frozen": True}

    def draw(self, rng: random.Random) -> Decimal:
        scale = 10**self.places
        units = rng.randrange(int(self.lo * scale), int(self.hi * scale))
        return Decimal(units).scaleb(-self.places)

    def render(self, value: Any) -> str:
        return f"{Decimal(value):.{self.places}f}"


TemplateParameter = Annotated[
    Union[NoParam, IntRange, DecimalRange], Field(discriminator="kind")
]


class TaskTemplate(BaseModel):
    """
    A parameterized (description, reference query) pair bound to one archetype.

    `query_format` takes `{table}` and, unless the parameter is NoParam, `{param}`;
    `description_format` takes only `{param}`. The same rendered parameter text is
    substituted into both.
    """

    key: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    kind: TableKind
    description_format: str
    query_format: str
    difficulty: Difficulty
    required_columns: FrozenSet[str]
    parameter: TemplateParameter = Field(default_factory=NoParam)

    model_config = {"frozen": True}

    def render(self, table_name: str, value: Any = None) -> Tuple[str, str]:
        """Return (description, reference query) for a table and drawn parameter."""
        param = self.parameter.render(value)
        return (
            self.description_format.format(param=param),
            self.query_format.format(table=table_name, param=param),
        )


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


class Task(BaseModel):
    """
    One instantiated template bound to one practice table.

    The physical table name and the reference query are excluded from
    serialization; learner-facing callers should hand out `to_view()`.
    """

    id: str
    description: str
    table_name: str = Field(..., exclude=True)
    kind: TableKind
    template_key: str
    difficulty: Difficulty
    created_at: datetime
    reference_query: str = Field(..., exclude=True, repr=False)

    model_config = {"frozen": True}

    def to_view(self) -> "TaskView":
        return TaskView(
            id=self.id,
            description=self.description,
            difficulty=self.difficulty,
            created_at=self.created_at,
            table=self.kind.value,
        )


class TaskView(BaseModel):
    """Learner-facing representation of a task."""

    id: str = Field(..., examples=["task_3f2a9c0e6b1d4e7f8a9b0c1d2e3f4a5b"])
    description: str = Field(..., examples=["Find the products with a rating above 3.7."])
    difficulty: Difficulty
    created_at: datetime
    table: str = Field(..., description="Table name to use in the query.", examples=["products"])


class VerificationResult(BaseModel):
    correct: bool
    message: Optional[str] = None

    model_config = {"frozen": True}


class SchemaColumn(BaseModel):
    name: str
    type: str
    nullable: bool

    model_config = {"frozen": True}


class QueryResult(BaseModel):
    """Columns and rows of one executed query."""

    columns: List[str]
    rows: List[Tuple[Any, ...]]

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


__all__ = [
    "LogicalType",
    "TableKind",
    "Difficulty",
    "ColumnSpec",
    "TableArchetype",
    "TableInstance",
    "NoParam",
    "IntRange",
    "DecimalRange",
    "TemplateParameter",
    "TaskTemplate",
    "Task",
    "TaskView",
    "VerificationResult",
    "SchemaColumn",
    "QueryResult",
]
