from __future__ import annotations

import random
import re
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from sql_trainer.catalog import archetype, archetypes
from sql_trainer.domain.models import TableKind
from sql_trainer.engine.generator import (
    CITIES,
    DEPARTMENTS,
    FIRST_NAMES,
    LAST_NAMES,
    ORDER_STATUSES,
    PRODUCT_CATEGORIES,
    PRODUCT_NAMES,
    generate,
)

ROWS = 200
NOW = datetime(2024, 6, 1, 12, 0, 0)


def _rows(kind: TableKind, n: int = ROWS, seed: int = 7) -> list[dict]:
    return generate(archetype(kind), n, rng=random.Random(seed), now=NOW)


@pytest.mark.parametrize("blueprint", archetypes(), ids=lambda a: a.kind.value)
def test_rows_have_exactly_the_insertable_columns(blueprint) -> None:
    rows = generate(blueprint, ROWS, rng=random.Random(1), now=NOW)
    assert len(rows) == ROWS
    expected = [c.name for c in blueprint.insertable_columns]
    for row in rows:
        assert list(row) == expected
        assert all(row[c.name] is not None for c in blueprint.insertable_columns if not c.nullable)


def test_zero_rows_and_negative_count() -> None:
    assert generate(archetype(TableKind.EMPLOYEES), 0) == []
    with pytest.raises(ValueError):
        generate(archetype(TableKind.EMPLOYEES), -1)


def test_same_seed_same_rows() -> None:
    assert _rows(TableKind.PRODUCTS, seed=3) == _rows(TableKind.PRODUCTS, seed=3)


def test_employee_values_stay_in_range() -> None:
    earliest = (NOW - timedelta(days=4 * 365 + 11 * 30 + 27)).date()
    for row in _rows(TableKind.EMPLOYEES):
        assert row["first_name"] in FIRST_NAMES
        assert row["last_name"] in LAST_NAMES
        assert row["department"] in DEPARTMENTS
        assert row["email"] == f"{row['first_name']}.{row['last_name']}@example.com".lower()
        assert Decimal("30000") <= row["salary"] < Decimal("150000")
        assert row["salary"].as_tuple().exponent == -2
        assert isinstance(row["hire_date"], date) and not isinstance(row["hire_date"], datetime)
        assert earliest <= row["hire_date"] <= NOW.date()


def test_product_values_stay_in_range() -> None:
    for row in _rows(TableKind.PRODUCTS):
        assert row["name"] in PRODUCT_NAMES
        assert row["category"] in PRODUCT_CATEGORIES
        assert Decimal("10") <= row["price"] < Decimal("1000")
        assert 0 <= row["stock"] < 1000
        assert Decimal("1") <= row["rating"] < Decimal("5")
        assert isinstance(row["created_at"], datetime)
        assert NOW - timedelta(days=365) < row["created_at"] <= NOW


def test_order_and_customer_values_stay_in_range() -> None:
    for row in _rows(TableKind.ORDERS):
        first, last = row["customer_name"].split(" ")
        assert first in FIRST_NAMES and last in LAST_NAMES
        assert 1 <= row["quantity"] < 20
        assert Decimal("5") <= row["unit_price"] < Decimal("500")
        assert row["status"] in ORDER_STATUSES
        assert row["ordered_at"] <= NOW
    for row in _rows(TableKind.CUSTOMERS):
        assert row["city"] in CITIES
        assert 0 <= row["loyalty_points"] < 5000
        assert re.fullmatch(r"[a-z]+\.[a-z]+@example\.com", row["email"])
        assert row["signup_date"] <= NOW.date()
