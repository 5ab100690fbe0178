import math
import random
from collections.abc import Sequence


def generate_cp(base_cp: float, variance_pct: float, rng: random.Random | None = None) -> int:
    """Roll a CP value uniformly within ``base_cp * (1 ± variance_pct)``.

    The result is rounded and never below 1. Non-finite or negative inputs are clamped
    rather than rejected so callers can rely on always getting a usable value.
    """
    rng = rng or random.Random()

    if not math.isfinite(base_cp) or base_cp < 0:
        base_cp = 0
    if not math.isfinite(variance_pct) or variance_pct < 0:
        variance_pct = 0

    offset = rng.uniform(-variance_pct, variance_pct)
    return max(1, round(base_cp * (1 + offset)))


MERGE_BASE_BONUS_PCT = 15
MERGE_BONUS_PER_SACRIFICE_PCT = 5
MERGE_COST_CP_PCT = 20
MERGE_COST_PER_SACRIFICE = 1000
MIN_MERGE_COST = 500


def merge_cp(main_cp: int, sacrifice_cps: Sequence[int]) -> int:
    """Combined CP of a merge: the sum of every input plus a bonus growing with the sacrifices."""
    total = main_cp + sum(sacrifice_cps)
    bonus_pct = MERGE_BASE_BONUS_PCT + len(sacrifice_cps) * MERGE_BONUS_PER_SACRIFICE_PCT
    bonus = total * bonus_pct // 100
    return total + bonus


def merge_cost(main_cp: int, sacrifice_cps: Sequence[int]) -> int:
    total = main_cp + sum(sacrifice_cps)
    cost = total * MERGE_COST_CP_PCT // 100 + len(sacrifice_cps) * MERGE_COST_PER_SACRIFICE
    return max(cost, MIN_MERGE_COST)
