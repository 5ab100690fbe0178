import math
import random

import pytest

from app.core.cp import generate_cp, merge_cost, merge_cp


def test_stays_within_variance():
    rng = random.Random(7)
    values = [generate_cp(1000, 0.1, rng) for _ in range(500)]
    assert min(values) >= 900
    assert max(values) <= 1100
    assert len(set(values)) > 1


def test_zero_variance_returns_base():
    assert generate_cp(5500, 0.0) == 5500


def test_never_below_one():
    rng = random.Random(3)
    assert all(generate_cp(1, 0.9, rng) >= 1 for _ in range(100))
    assert generate_cp(0, 0.1) == 1


@pytest.mark.parametrize(
    ("base_cp", "variance"),
    [(-50, 0.1), (math.nan, 0.1), (math.inf, 0.1), (100, -0.5), (100, math.nan)],
)
def test_bad_inputs_never_raise(base_cp: float, variance: float):
    assert generate_cp(base_cp, variance, random.Random(0)) >= 1


def test_seeded_rng_is_reproducible():
    first = [generate_cp(250, 0.1, random.Random(42)) for _ in range(3)]
    second = [generate_cp(250, 0.1, random.Random(42)) for _ in range(3)]
    assert first == second


@pytest.mark.parametrize(
    ("main", "sacrifices", "expected"),
    [
        (1000, [1000], 2400),
        (300, [200, 200], 875),
        (100, [10, 10, 10], 169),
    ],
)
def test_merge_cp_bonus_grows_with_sacrifices(main: int, sacrifices: list[int], expected: int):
    assert merge_cp(main, sacrifices) == expected


def test_merge_cost_has_a_floor():
    assert merge_cost(50, []) == 500
    assert merge_cost(300, [200, 200]) == 2140
