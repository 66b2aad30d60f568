"""
Schema catalog: the fixed registry of table archetypes.
"""

from __future__ import annotations

from typing import Dict, Tuple

from sql_trainer.domain.models import ColumnSpec, LogicalType, TableArchetype, TableKind

_ID = ColumnSpec(name="id", logical_type=LogicalType.IDENTIFIER)


def _text(name: str, max_length: int = 50) -> ColumnSpec:
    return ColumnSpec(name=name, logical_type=LogicalType.SHORT_TEXT, max_length=max_length)


_ARCHETYPES: Tuple[TableArchetype, ...] = (
    TableArchetype(
        kind=TableKind.EMPLOYEES,
        columns=(
            _ID,
            _text("first_name"),
            _text("last_name"),
            _text("email", 100),
            ColumnSpec(name="salary", logical_type=LogicalType.MONEY),
            _text("department"),
            ColumnSpec(name="hire_date", logical_type=LogicalType.DATE),
        ),
    ),
    TableArchetype(
        kind=TableKind.PRODUCTS,
        columns=(
            _ID,
            _text("name", 100),
            _text("category"),
            ColumnSpec(name="price", logical_type=LogicalType.MONEY),
            ColumnSpec(name="stock", logical_type=LogicalType.INTEGER),
            ColumnSpec(name="rating", logical_type=LogicalType.BOUNDED_DECIMAL, nullable=True),
            ColumnSpec(name="created_at", logical_type=LogicalType.TIMESTAMP),
        ),
    ),
    TableArchetype(
        kind=TableKind.ORDERS,
        columns=(
            _ID,
            _text("customer_name", 100),
            _text("product", 100),
            ColumnSpec(name="quantity", logical_type=LogicalType.INTEGER),
            ColumnSpec(name="unit_price", logical_type=LogicalType.MONEY),
            _text("status", 20),
            ColumnSpec(name="ordered_at", logical_type=LogicalType.TIMESTAMP),
        ),
    ),
    TableArchetype(
        kind=TableKind.CUSTOMERS,
        columns=(
            _ID,
            _text("first_name"),
            _text("last_name"),
            _text("email", 100),
            _text("city"),
            ColumnSpec(name="loyalty_points", logical_type=LogicalType.INTEGER),
            ColumnSpec(name="signup_date", logical_type=LogicalType.DATE),
        ),
    ),
)

_BY_KIND: Dict[TableKind, TableArchetype] = {a.kind: a for a in _ARCHETYPES}


def archetypes() -> Tuple[TableArchetype, ...]:
    """All registered archetypes, in declaration order."""
    return _ARCHETYPES


def archetype(kind: TableKind) -> TableArchetype:
    """Look up an archetype; an unregistered kind raises KeyError."""
    return _BY_KIND[TableKind(kind)]


__all__ = ["archetype", "archetypes"]
