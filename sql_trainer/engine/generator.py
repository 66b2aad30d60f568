"""
Synthetic data generator for practice tables.

Each archetype declares a value policy per insertable column. Policies are small
frozen dataclasses that draw one value from an injected random source:

- Words: uniform pick from a fixed word list.
- FullName: "<first> <last>" drawn from the name lists.
- Derived: formatted from values already generated in the same row.
- Cents: Decimal on a 10**-places grid in the half-open range [lo, hi).
- Integers: int in the half-open range [lo, hi).
- PastOffset: `now` minus a random years/months/days offset (plus a sub-day
  offset for timestamps), so generated history never runs past `now`.

Usage:
    from sql_trainer.catalog import archetype
    from sql_trainer.engine.generator import generate

    rows = generate(archetype(TableKind.EMPLOYEES), 50, rng=random.Random(42))
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sql_trainer.domain.models import TableArchetype, TableKind
from sql_trainer.engine.selection import choose_uniform, ensure_rng

FIRST_NAMES = ("John", "Alice", "Bob", "Emma", "Michael", "Sarah", "David", "Lisa")
LAST_NAMES = ("Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller")
DEPARTMENTS = ("IT", "HR", "Sales", "Marketing", "Finance", "Operations")
PRODUCT_CATEGORIES = ("Electronics", "Books", "Clothing", "Food", "Sports", "Home")
PRODUCT_NAMES = ("Laptop", "Smartphone", "Headphones", "Camera", "Tablet", "Watch")
ORDER_STATUSES = ("pending", "shipped", "delivered", "cancelled")
CITIES = ("London", "Paris", "Berlin", "Madrid", "Rome", "Vienna", "Prague")

_DAYS_PER_YEAR = 365
_DAYS_PER_MONTH = 30
_SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class Words:
    words: Tuple[str, ...]

    def draw(self, rng: random.Random, row: Mapping[str, Any], now: datetime) -> str:
        return choose_uniform(rng, self.words)


@dataclass(frozen=True)
class FullName:
    first: Tuple[str, ...] = FIRST_NAMES
    last: Tuple[str, ...] = LAST_NAMES

    def draw(self, rng: random.Random, row: Mapping[str, Any], now: datetime) -> str:
        return f"{choose_uniform(rng, self.first)} {choose_uniform(rng, self.last)}"


@dataclass(frozen=True)
class Derived:
    """Formats `template` with earlier columns of the same row."""

    template: str
    sources: Tuple[str, ...]
    lower: bool = False

    def draw(self, rng: random.Random, row: Mapping[str, Any], now: datetime) -> str:
        value = self.template.format(**{name: row[name] for name in self.sources})
        return value.lower() if self.lower else value


@dataclass(frozen=True)
class Cents:
    lo: Decimal
    hi: Decimal
    places: int = 2

    def draw(self, rng: random.Random, row: Mapping[str, Any], now: datetime) -> Decimal:
        scale = 10**self.places
        return Decimal(rng.randrange(int(self.lo * scale), int(self.hi * scale))).scaleb(
            -self.places
        )


@dataclass(frozen=True)
class Integers:
    lo: int
    hi: int

    def draw(self, rng: random.Random, row: Mapping[str, Any], now: datetime) -> int:
        return rng.randrange(self.lo, self.hi)


@dataclass(frozen=True)
class PastOffset:
    years: int = 0
    months: int = 0
    days: int = 0
    with_time: bool = False

    def draw(
        self, rng: random.Random, row: Mapping[str, Any], now: datetime
    ) -> Union[date, datetime]:
        offset_days = (
            _below(rng, self.years) * _DAYS_PER_YEAR
            + _below(rng, self.months) * _DAYS_PER_MONTH
            + _below(rng, self.days)
        )
        if not self.with_time:
            return (now - timedelta(days=offset_days)).date()
        return now - timedelta(days=offset_days, seconds=rng.randrange(_SECONDS_PER_DAY))


ColumnPolicy = Union[Words, FullName, Derived, Cents, Integers, PastOffset]

_EMAIL = Derived("{first_name}.{last_name}@example.com", ("first_name", "last_name"), lower=True)

POLICIES: Dict[TableKind, Dict[str, ColumnPolicy]] = {
    TableKind.EMPLOYEES: {
        "first_name": Words(FIRST_NAMES),
        "last_name": Words(LAST_NAMES),
        "email": _EMAIL,
        "salary": Cents(Decimal(30_000), Decimal(150_000)),
        "department": Words(DEPARTMENTS),
        "hire_date": PastOffset(years=5, months=12, days=28),
    },
    TableKind.PRODUCTS: {
        "name": Words(PRODUCT_NAMES),
        "category": Words(PRODUCT_CATEGORIES),
        "price": Cents(Decimal(10), Decimal(1_000)),
        "stock": Integers(0, 1_000),
        "rating": Cents(Decimal(1), Decimal(5)),
        "created_at": PastOffset(months=12, days=28, with_time=True),
    },
    TableKind.ORDERS: {
        "customer_name": FullName(),
        "product": Words(PRODUCT_NAMES),
        "quantity": Integers(1, 20),
        "unit_price": Cents(Decimal(5), Decimal(500)),
        "status": Words(ORDER_STATUSES),
        "ordered_at": PastOffset(months=6, days=28, with_time=True),
    },
    TableKind.CUSTOMERS: {
        "first_name": Words(FIRST_NAMES),
        "last_name": Words(LAST_NAMES),
        "email": _EMAIL,
        "city": Words(CITIES),
        "loyalty_points": Integers(0, 5_000),
        "signup_date": PastOffset(years=3, months=12, days=28),
    },
}


def _below(rng: random.Random, bound: int) -> int:
    return rng.randrange(bound) if bound > 0 else 0


def _utcnow() -> datetime:
    # TIMESTAMP columns are zone-less; store naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def generate(
    archetype: TableArchetype,
    n: int,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Generate `n` rows for an archetype.

    Parameters
    ----------
    archetype : TableArchetype
        Blueprint whose insertable columns are filled, in declaration order.
    n : int
        Number of rows, must be >= 0.
    rng : random.Random | None
        Random source; a fresh one is used when omitted.
    now : datetime | None
        Upper bound for date/timestamp values (naive UTC). Defaults to the
        current time.

    Returns
    -------
    list[dict[str, Any]]
        One mapping per row, keyed by column name. The identifier column is
        absent; the store assigns it.
    """
    if n < 0:
        raise ValueError(f"row count must be >= 0, got {n}")
    rng = ensure_rng(rng)
    now = now or _utcnow()
    policies = POLICIES[archetype.kind]
    columns = archetype.insertable_columns

    rows: List[Dict[str, Any]] = []
    for _ in range(n):
        row: Dict[str, Any] = {}
        for column in columns:
            row[column.name] = policies[column.name].draw(rng, row, now)
        rows.append(row)
    return rows


__all__ = [
    "POLICIES",
    "ColumnPolicy",
    "Cents",
    "Derived",
    "FullName",
    "Integers",
    "PastOffset",
    "Words",
    "generate",
]
