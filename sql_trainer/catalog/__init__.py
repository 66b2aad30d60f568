"""
Catalog package for the SQL Trainer.

Fixed, process-wide registries: table archetypes and the task templates bound to
them. The startup consistency check lives in `sql_trainer.catalog.consistency`.
"""

from sql_trainer.catalog.archetypes import archetype, archetypes
from sql_trainer.catalog.templates import (
    compatible_templates,
    kinds_with_templates,
    template,
    templates,
)

__all__ = [
    "archetype",
    "archetypes",
    "compatible_templates",
    "kinds_with_templates",
    "template",
    "templates",
]
