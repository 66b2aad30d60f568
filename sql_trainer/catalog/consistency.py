"""
Startup consistency check over the fixed catalogs.

Catalog mistakes are programming errors; they must stop the process at startup
rather than surface per request. `check_catalog()` collects every problem and
raises a single CatalogError listing them all.
"""

from __future__ import annotations

import random
from collections import Counter
from string import Formatter
from typing import Iterable, List, Mapping, Optional, Set

from sql_trainer.catalog.archetypes import archetypes as registered_archetypes
from sql_trainer.catalog.templates import templates as registered_templates
from sql_trainer.domain.errors import CatalogError, InvalidQuery
from sql_trainer.domain.models import LogicalType, NoParam, TableArchetype, TableKind, TaskTemplate
from sql_trainer.engine.generator import POLICIES, ColumnPolicy, Derived
from sql_trainer.engine.guard import guard_query

_PROBE_TABLE = "practice_0_0"


def _placeholders(fmt: str) -> Set[str]:
    return {field for _, field, _, _ in Formatter().parse(fmt) if field is not None}


def _check_archetype(
    archetype: TableArchetype, policies: Mapping[str, ColumnPolicy], problems: List[str]
) -> None:
    kind = archetype.kind.value
    identifiers = [c for c in archetype.columns if c.logical_type is LogicalType.IDENTIFIER]
    if len(identifiers) != 1:
        problems.append(f"archetype {kind!r} has {len(identifiers)} identifier columns, expected 1")
    duplicates = [n for n, count in Counter(archetype.column_names).items() if count > 1]
    if duplicates:
        problems.append(f"archetype {kind!r} repeats columns {sorted(duplicates)}")

    seen: Set[str] = set()
    for column in archetype.insertable_columns:
        policy = policies.get(column.name)
        if policy is None:
            problems.append(f"archetype {kind!r} column {column.name!r} has no generator policy")
        elif isinstance(policy, Derived):
            missing = [s for s in policy.sources if s not in seen]
            if missing:
                problems.append(
                    f"archetype {kind!r} column {column.name!r} derives from "
                    f"{missing}, which are not generated before it"
                )
        seen.add(column.name)


def _check_template(
    template: TaskTemplate, archetype: Optional[TableArchetype], problems: List[str]
) -> None:
    key = template.key
    if archetype is None:
        problems.append(f"template {key!r} targets unregistered archetype {template.kind.value!r}")
        return

    missing = sorted(template.required_columns - set(archetype.column_names))
    if missing:
        problems.append(f"template {key!r} requires columns {missing} not in {archetype.kind.value!r}")

    expects_param = not isinstance(template.parameter, NoParam)
    wanted_query = {"table", "param"} if expects_param else {"table"}
    wanted_description = {"param"} if expects_param else set()
    try:
        query_fields = _placeholders(template.query_format)
        description_fields = _placeholders(template.description_format)
    except ValueError as exc:
        problems.append(f"template {key!r} has a malformed format string: {exc}")
        return
    if query_fields != wanted_query:
        problems.append(
            f"template {key!r} query placeholders {sorted(query_fields)} != {sorted(wanted_query)}"
        )
    if description_fields != wanted_description:
        problems.append(
            f"template {key!r} description placeholders {sorted(description_fields)} "
            f"!= {sorted(wanted_description)}"
        )
    if query_fields != wanted_query or description_fields != wanted_description:
        return

    value = template.parameter.draw(random.Random(0))
    _, query = template.render(_PROBE_TABLE, value)
    try:
        guard_query(query, _PROBE_TABLE, template.kind.value)
    except InvalidQuery as exc:
        problems.append(f"template {key!r} renders a query the guard rejects: {exc}")


def check_catalog(
    archetypes: Optional[Iterable[TableArchetype]] = None,
    templates: Optional[Iterable[TaskTemplate]] = None,
    policies: Optional[Mapping[TableKind, Mapping[str, ColumnPolicy]]] = None,
) -> None:
    """
    Verify the archetype and template registries (or the given replacements).

    Checks: one identifier column per archetype, unique kinds, column names and
    template keys, a generator policy for every insertable column, derived
    columns only reading earlier columns, required columns being a subset of the
    template's archetype, format placeholders matching the parameter kind, every
    rendered reference query passing the statement guard, and at least one
    template per archetype.

    Raises
    ------
    CatalogError
        Listing every problem found.
    """
    archetype_list = list(registered_archetypes() if archetypes is None else archetypes)
    template_list = list(registered_templates() if templates is None else templates)
    policy_map = POLICIES if policies is None else policies
    problems: List[str] = []

    kinds = Counter(a.kind for a in archetype_list)
    for kind, count in kinds.items():
        if count > 1:
            problems.append(f"archetype {kind.value!r} is registered {count} times")
    by_kind = {a.kind: a for a in archetype_list}

    for archetype in archetype_list:
        _check_archetype(archetype, policy_map.get(archetype.kind, {}), problems)

    keys = Counter(t.key for t in template_list)
    for key, count in keys.items():
        if count > 1:
            problems.append(f"template key {key!r} is registered {count} times")

    for template in template_list:
        _check_template(template, by_kind.get(template.kind), problems)

    covered = {t.kind for t in template_list}
    for archetype in archetype_list:
        if archetype.kind not in covered:
            problems.append(f"archetype {archetype.kind.value!r} has no task templates")

    if problems:
        raise CatalogError(problems)


__all__ = ["check_catalog"]
