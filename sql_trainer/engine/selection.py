"""
Random selection helpers with an injectable random source.
"""

from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def choose_uniform(rng: random.Random, items: Sequence[T]) -> T:
    """
    Pick one item uniformly at random.

    Raises
    ------
    ValueError
        If `items` is empty.
    """
    if not items:
        raise ValueError("cannot choose from an empty sequence")
    return items[rng.randrange(len(items))]


def ensure_rng(rng: Optional[random.Random]) -> random.Random:
    """Return `rng`, or a new OS-seeded generator when none is injected."""
    return rng if rng is not None else random.Random()


__all__ = ["choose_uniform", "ensure_rng"]
