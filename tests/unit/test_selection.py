from __future__ import annotations

import random
from collections import Counter

import pytest

from sql_trainer.engine.selection import choose_uniform, ensure_rng

DRAWS = 6000
ITEMS = ("a", "b", "c")


def test_choose_uniform_rejects_empty_sequence() -> None:
    with pytest.raises(ValueError):
        choose_uniform(random.Random(0), [])


def test_choose_uniform_covers_every_item_roughly_evenly() -> None:
    rng = random.Random(42)
    counts = Counter(choose_uniform(rng, ITEMS) for _ in range(DRAWS))
    assert set(counts) == set(ITEMS)
    for item in ITEMS:
        assert abs(counts[item] - DRAWS / len(ITEMS)) < DRAWS * 0.05


def test_choose_uniform_is_reproducible_with_seed() -> None:
    first = [choose_uniform(random.Random(9), ITEMS) for _ in range(5)]
    second = [choose_uniform(random.Random(9), ITEMS) for _ in range(5)]
    assert first == second


def test_ensure_rng_keeps_injected_generator() -> None:
    rng = random.Random(1)
    assert ensure_rng(rng) is rng
    assert isinstance(ensure_rng(None), random.Random)
