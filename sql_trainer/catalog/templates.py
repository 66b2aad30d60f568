"""
Task template catalog: the fixed registry of parameterized practice tasks.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Tuple

from sql_trainer.domain.models import (
    DecimalRange,
    Difficulty,
    IntRange,
    TableKind,
    TaskTemplate,
)

_TEMPLATES: Tuple[TaskTemplate, ...] = (
    # employees
    TaskTemplate(
        key="employees_above_average_salary",
        kind=TableKind.EMPLOYEES,
        description_format="Find all employees whose salary is above the average salary.",
        query_format="SELECT * FROM {table} WHERE salary > (SELECT AVG(salary) FROM {table})",
        difficulty=Difficulty.MEDIUM,
        required_columns=frozenset({"salary"}),
    ),
    TaskTemplate(
        key="employees_top_salaries",
        kind=TableKind.EMPLOYEES,
        description_format="List the {param} employees with the highest salary.",
        query_format="SELECT * FROM {table} ORDER BY salary DESC LIMIT {param}",
        difficulty=Difficulty.EASY,
        required_columns=frozenset({"salary"}),
        parameter=IntRange(lo=3, hi=7),
    ),
    TaskTemplate(
        key="employees_count_by_department",
        kind=TableKind.EMPLOYEES,
        description_format="Count the employees in each department, largest department first.",
        query_format=(
            "SELECT department, COUNT(*) AS count FROM {table} "
            "GROUP BY department ORDER BY count DESC"
        ),
        difficulty=Difficulty.EASY,
        required_columns=frozenset({"department"}),
    ),
    TaskTemplate(
        key="employees_avg_salary_by_department",
        kind=TableKind.EMPLOYEES,
        description_format=(
            "Find the average salary in each department, highest average first."
        ),
        query_format=(
            "SELECT department, AVG(salary) AS avg_salary FROM {table} "
            "GROUP BY department ORDER BY avg_salary DESC"
        ),
        difficulty=Difficulty.MEDIUM,
        required_columns=frozenset({"department", "salary"}),
    ),
    # products
    TaskTemplate(
        key="products_rating_above",
        kind=TableKind.PRODUCTS,
        description_format=(
            "Find the products with a rating above {param}, best rated first."
        ),
        query_format="SELECT * FROM {table} WHERE rating > {param} ORDER BY rating DESC",
        difficulty=Difficulty.EASY,
        required_columns=frozenset({"rating"}),
        parameter=DecimalRange(lo=Decimal("3.0"), hi=Decimal("4.5"), places=1),
    ),
    TaskTemplate(
        key="products_stock_value_by_category",
        kind=TableKind.PRODUCTS,
        description_format=(
            "Compute the total value of the stock (price times stock) in each category, "
            "highest value first."
        ),
        query_format=(
            "SELECT category, SUM(price * stock) AS total_value FROM {table} "
            "GROUP BY category ORDER BY total_value DESC"
        ),
        difficulty=Difficulty.HARD,
        required_columns=frozenset({"category", "price", "stock"}),
    ),
    # orders
    TaskTemplate(
        key="orders_min_quantity",
        kind=TableKind.ORDERS,
        description_format="Find all orders with a quantity of at least {param} items.",
        query_format="SELECT * FROM {table} WHERE quantity >= {param}",
        difficulty=Difficulty.EASY,
        required_columns=frozenset({"quantity"}),
        parameter=IntRange(lo=10, hi=15),
    ),
    TaskTemplate(
        key="orders_revenue_by_status",
        kind=TableKind.ORDERS,
        description_format=(
            "Compute the revenue (quantity times unit price) for each order status, "
            "highest revenue first."
        ),
        query_format=(
            "SELECT status, SUM(quantity * unit_price) AS revenue FROM {table} "
            "GROUP BY status ORDER BY revenue DESC"
        ),
        difficulty=Difficulty.MEDIUM,
        required_columns=frozenset({"status", "quantity", "unit_price"}),
    ),
    # customers
    TaskTemplate(
        key="customers_per_city",
        kind=TableKind.CUSTOMERS,
        description_format="Count the customers in each city, most customers first.",
        query_format=(
            "SELECT city, COUNT(*) AS customers FROM {table} "
            "GROUP BY city ORDER BY customers DESC"
        ),
        difficulty=Difficulty.EASY,
        required_columns=frozenset({"city"}),
    ),
    TaskTemplate(
        key="customers_top_loyalty",
        kind=TableKind.CUSTOMERS,
        description_format=(
            "Show the first name, last name and loyalty points of the {param} customers "
            "with the most loyalty points."
        ),
        query_format=(
            "SELECT first_name, last_name, loyalty_points FROM {table} "
            "ORDER BY loyalty_points DESC LIMIT {param}"
        ),
        difficulty=Difficulty.MEDIUM,
        required_columns=frozenset({"first_name", "last_name", "loyalty_points"}),
        parameter=IntRange(lo=3, hi=7),
    ),
)

_BY_KEY: Dict[str, TaskTemplate] = {t.key: t for t in _TEMPLATES}


def templates() -> Tuple[TaskTemplate, ...]:
    """All registered templates, in registry order."""
    return _TEMPLATES


def template(key: str) -> TaskTemplate:
    """Look up a template by key; an unknown key raises KeyError."""
    return _BY_KEY[key]


def compatible_templates(kind: TableKind) -> Tuple[TaskTemplate, ...]:
    """Templates applicable to an archetype kind, in registry order."""
    kind = TableKind(kind)
    return tuple(t for t in _TEMPLATES if t.kind is kind)


def kinds_with_templates() -> Tuple[TableKind, ...]:
    """Archetype kinds that have at least one template, in enum order."""
    present = {t.kind for t in _TEMPLATES}
    return tuple(kind for kind in TableKind if kind in present)


__all__ = ["compatible_templates", "kinds_with_templates", "template", "templates"]
