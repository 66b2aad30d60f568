"""
Engine package for the SQL Trainer.

Re-exports the task generation and verification components so downstream code
can import from `sql_trainer.engine` directly.
"""

from sql_trainer.engine.comparison import Comparison, results_equivalent
from sql_trainer.engine.composer import Composer
from sql_trainer.engine.generator import generate
from sql_trainer.engine.guard import GuardedQuery, guard_query
from sql_trainer.engine.provisioner import Provisioner, validate_table_name
from sql_trainer.engine.selection import choose_uniform
from sql_trainer.engine.verifier import Verifier

__all__ = [
    # Generation
    "Composer",
    "Provisioner",
    "choose_uniform",
    "generate",
    "validate_table_name",
    # Verification
    "Comparison",
    "GuardedQuery",
    "Verifier",
    "guard_query",
    "results_equivalent",
]
