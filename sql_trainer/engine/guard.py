"""
Static guard for learner queries, built on sqlglot.

Before a candidate query touches the database it must parse (PostgreSQL dialect)
as exactly one read-only query that only reads the task's own table. Table
references written with the learner-facing alias (e.g. `products`) are rewritten
to the physical practice table.

The read-only transaction the executor opens is the second line of defence; this
module rejects destructive statements before any execution happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from sql_trainer.domain.errors import InvalidQuery

DIALECT = "postgres"
MAX_QUERY_LENGTH = 10_000

# Nodes that write, change schema, lock rows or escape the parser.
_FORBIDDEN_NODES = (
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Merge,
    exp.Create,
    exp.Drop,
    exp.Into,
    exp.Lock,
    exp.Command,
)

# Server-side functions that touch settings, files, other sessions or locks.
_FORBIDDEN_FUNCTION_PREFIXES = ("pg_", "lo_", "dblink", "set_config")

# XML export functions run SQL text or read tables named by string.
_FORBIDDEN_FUNCTIONS = frozenset(
    f"{source}_to_{suffix}"
    for source in ("query", "table", "cursor", "schema", "database")
    for suffix in ("xml", "xmlschema", "xml_and_xmlschema")
)


@dataclass(frozen=True)
class GuardedQuery:
    """A candidate query that passed the guard."""

    sql: str
    tree: exp.Expression

    @property
    def is_ordered(self) -> bool:
        return has_ordering(self.tree)


def parse_single(query: str) -> exp.Expression:
    """Parse exactly one statement or raise InvalidQuery."""
    if not query or not query.strip():
        raise InvalidQuery("The query is empty.")
    if len(query) > MAX_QUERY_LENGTH:
        raise InvalidQuery(f"The query is too long (more than {MAX_QUERY_LENGTH} characters).")
    try:
        statements = [s for s in sqlglot.parse(query, read=DIALECT) if s is not None]
    except SqlglotError as exc:
        raise InvalidQuery("The query could not be parsed; check the SQL syntax.") from exc
    if len(statements) != 1:
        raise InvalidQuery("Submit exactly one SQL statement.")
    return statements[0]


def _cte_names(tree: exp.Expression) -> Set[str]:
    return {cte.alias_or_name.lower() for cte in tree.find_all(exp.CTE)}


def _function_name(func: exp.Func) -> str:
    if isinstance(func, exp.Anonymous):
        return func.name.lower()
    return func.sql_name().lower()


def _is_forbidden(name: str) -> bool:
    return name in _FORBIDDEN_FUNCTIONS or name.startswith(_FORBIDDEN_FUNCTION_PREFIXES)


def _uses_forbidden_function(tree: exp.Expression) -> bool:
    return any(_is_forbidden(_function_name(func)) for func in tree.find_all(exp.Func))


def guard_query(query: str, table_name: str, alias: str) -> GuardedQuery:
    """
    Validate a learner query and bind it to the task's table.

    Parameters
    ----------
    query : str
        Raw learner SQL.
    table_name : str
        Physical practice table of the task.
    alias : str
        Learner-facing table name (the archetype name).

    Returns
    -------
    GuardedQuery
        SQL to execute (the original text unless an alias had to be rewritten)
        and its syntax tree.

    Raises
    ------
    InvalidQuery
        With a learner-facing message.
    """
    tree = parse_single(query)
    if not isinstance(tree, exp.Query):
        raise InvalidQuery("Only SELECT queries are allowed.")
    if tree.find(*_FORBIDDEN_NODES) is not None:
        raise InvalidQuery("Only read-only SELECT queries are allowed.")
    if _uses_forbidden_function(tree):
        raise InvalidQuery("The query calls a function that is not available here.")

    physical = table_name.lower()
    alias = alias.lower()
    ctes = _cte_names(tree)
    rewritten = False
    for table in list(tree.find_all(exp.Table)):
        if not isinstance(table.this, exp.Identifier):
            # table functions such as generate_series(...)
            continue
        name = table.name.lower()
        schema = table.db.lower()
        if table.catalog or schema not in ("", "public"):
            raise InvalidQuery(f"The query may only read from the table '{alias}'.")
        if (not schema and name in ctes) or name == physical:
            continue
        if name == alias:
            table.set("this", exp.to_identifier(table_name))
            table.set("db", None)
            if not table.alias:
                table.set("alias", exp.TableAlias(this=exp.to_identifier(alias)))
            rewritten = True
            continue
        raise InvalidQuery(f"The query may only read from the table '{alias}'.")

    sql_text = tree.sql(dialect=DIALECT) if rewritten else query.strip().rstrip(";")
    return GuardedQuery(sql=sql_text, tree=tree)


def has_ordering(tree: exp.Expression) -> bool:
    """True if the outermost query carries an ORDER BY."""
    return tree.args.get("order") is not None


def order_key_indexes(tree: exp.Expression, columns: Sequence[str]) -> Optional[List[int]]:
    """
    Resolve the outermost ORDER BY keys to output column positions.

    A key resolves when it is a position number (`ORDER BY 2`), the name of an
    output column (`ORDER BY rating`, `ORDER BY count`), or textually equal to a
    projection expression (`ORDER BY COUNT(*)` for `SELECT COUNT(*) AS n`).

    Returns None if the query is unordered or any key cannot be resolved.
    """
    order = tree.args.get("order")
    if order is None:
        return None

    lowered = [c.lower() for c in columns]
    projections = [] if not isinstance(tree, exp.Select) else tree.expressions
    has_star = any(p.is_star for p in projections)

    indexes: List[int] = []
    for ordered in order.expressions:
        key = ordered.this
        index: Optional[int] = None
        if isinstance(key, exp.Literal) and key.is_int:
            position = int(key.name) - 1
            index = position if 0 <= position < len(columns) else None
        elif isinstance(key, exp.Column) and key.name.lower() in lowered:
            index = lowered.index(key.name.lower())
        elif projections and not has_star and len(projections) == len(columns):
            for i, projection in enumerate(projections):
                if projection.unalias() == key:
                    index = i
                    break
        if index is None:
            return None
        indexes.append(index)
    return indexes


__all__ = [
    "DIALECT",
    "GuardedQuery",
    "guard_query",
    "has_ordering",
    "order_key_indexes",
    "parse_single",
]
