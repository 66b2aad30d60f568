from __future__ import annotations

import pytest

from sql_trainer.catalog import (
    archetype,
    archetypes,
    compatible_templates,
    kinds_with_templates,
    template,
    templates,
)
from sql_trainer.catalog.consistency import check_catalog
from sql_trainer.domain.errors import CatalogError
from sql_trainer.domain.models import (
    ColumnSpec,
    Difficulty,
    IntRange,
    LogicalType,
    TableArchetype,
    TableKind,
    TaskTemplate,
)

EXPECTED_TEMPLATE_COUNT = 10


def _template(**overrides) -> TaskTemplate:
    fields = dict(
        key="products_cheap",
        kind=TableKind.PRODUCTS,
        description_format="Find products cheaper than {param}.",
        query_format="SELECT * FROM {table} WHERE price < {param}",
        difficulty=Difficulty.EASY,
        required_columns=frozenset({"price"}),
        parameter=IntRange(lo=10, hi=20),
    )
    fields.update(overrides)
    return TaskTemplate(**fields)


def _problems(**kwargs) -> list[str]:
    with pytest.raises(CatalogError) as excinfo:
        check_catalog(**kwargs)
    return excinfo.value.problems


def test_registered_catalog_is_consistent() -> None:
    check_catalog()


def test_every_archetype_has_one_identifier_column() -> None:
    for blueprint in archetypes():
        assert blueprint.identifier.name == "id"
        assert blueprint.columns[0] == blueprint.identifier
        assert "id" not in [c.name for c in blueprint.insertable_columns]


def test_template_registry_lookups() -> None:
    assert len(templates()) == EXPECTED_TEMPLATE_COUNT
    assert template("products_rating_above").kind is TableKind.PRODUCTS
    with pytest.raises(KeyError):
        template("missing")
    assert set(kinds_with_templates()) == set(TableKind)
    assert all(t.kind is TableKind.ORDERS for t in compatible_templates(TableKind.ORDERS))
    assert compatible_templates("customers") == compatible_templates(TableKind.CUSTOMERS)


def test_required_columns_are_subset_of_archetype_columns() -> None:
    for t in templates():
        assert t.required_columns <= set(archetype(t.kind).column_names), t.key


def test_rating_template_renders_same_parameter_text_twice() -> None:
    description, query = template("products_rating_above").render("practice_9_9", "3.7")
    assert description == "Find the products with a rating above 3.7, best rated first."
    assert query == "SELECT * FROM practice_9_9 WHERE rating > 3.7 ORDER BY rating DESC"


def test_parameterless_template_renders_without_param() -> None:
    description, query = template("employees_above_average_salary").render("practice_1_0")
    assert "{" not in description
    assert query.count("practice_1_0") == 2


def test_detects_required_column_missing_from_archetype() -> None:
    bad = _template(required_columns=frozenset({"price", "weight"}))
    problems = _problems(templates=list(templates()) + [bad])
    assert any("weight" in p for p in problems)


def test_detects_archetype_without_templates() -> None:
    problems = _problems(
        templates=[t for t in templates() if t.kind is not TableKind.ORDERS]
    )
    assert problems == ["archetype 'orders' has no task templates"]


def test_detects_duplicate_template_keys() -> None:
    duplicate = template("customers_per_city")
    problems = _problems(templates=list(templates()) + [duplicate])
    assert any("registered 2 times" in p for p in problems)


def test_detects_placeholder_mismatch() -> None:
    bad = _template(description_format="Find cheap products.")
    problems = _problems(templates=list(templates()) + [bad])
    assert any("description placeholders" in p for p in problems)


def test_detects_reference_query_rejected_by_guard() -> None:
    bad = _template(query_format="DELETE FROM {table} WHERE price < {param}")
    problems = _problems(templates=list(templates()) + [bad])
    assert any("guard rejects" in p for p in problems)


def test_detects_identifier_count_and_missing_policy() -> None:
    broken = TableArchetype(
        kind=TableKind.PRODUCTS,
        columns=(ColumnSpec(name="price", logical_type=LogicalType.MONEY),
                 ColumnSpec(name="colour", logical_type=LogicalType.SHORT_TEXT)),
    )
    others = [a for a in archetypes() if a.kind is not TableKind.PRODUCTS]
    problems = _problems(archetypes=others + [broken])
    assert any("0 identifier columns" in p for p in problems)
    assert any("'colour' has no generator policy" in p for p in problems)
