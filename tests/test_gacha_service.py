import asyncio
import itertools
import random

import pytest
from sqlmodel import select

from app.core.enums import DrawType
from app.core.exceptions import (
    EmptyRankPoolError,
    InsufficientCoinsError,
    InsufficientDrawsError,
    InvalidAmountError,
    PlayerNotFoundError,
)
from app.core.pity import PityTracker
from app.core.ranks import RankConfig, RankTable
from app.core.transaction import TransactionManager
from app.models.gacha_history import GachaHistory
from app.models.user_power import UserPower
from app.schemas.power import PowerCreate
from app.services.gacha import DrawEngine, GachaService
from app.services.power import PowerService


@pytest.fixture
def always_lowest(monkeypatch, gacha: GachaService, ranks):
    """Make every weighted roll land on the lowest rank."""
    monkeypatch.setattr(gacha.engine, "roll_rank", lambda: ranks.lowest)


async def test_single_free_draw(gacha, make_player, load_player, session_factory, always_lowest):
    await make_player(1, coins=1000, gacha_draws=1, pity_counter=0)

    result = await gacha.perform_draw(1, DrawType.FREE)

    assert result.power_rank == "Normal"
    assert result.rank == "Normal"
    assert result.pity_counter == 1
    assert not result.pity_triggered

    player = await load_player(1)
    assert player.gacha_draws == 0
    assert player.pity_counter == 1
    assert player.coins == 1000

    async with session_factory() as session:
        owned = (await session.exec(select(UserPower).where(UserPower.player_id == 1))).all()
        history = (
            await session.exec(select(GachaHistory).where(GachaHistory.player_id == 1))
        ).all()
    assert len(owned) == 1
    assert owned[0].combat_power == result.combat_power
    assert len(history) == 1
    assert history[0].draw_type == DrawType.FREE
    assert not history[0].was_pity


async def test_batch_is_all_or_nothing(gacha, make_player, load_player, count_history):
    await make_player(1, gacha_draws=5)

    with pytest.raises(InsufficientDrawsError) as exc_info:
        await gacha.perform_batch_draw(1, 10)

    assert exc_info.value.shortfall == 5
    assert (await load_player(1)).gacha_draws == 5
    assert await count_history(1) == 0


async def test_pity_guarantee(gacha, make_player, load_player, always_lowest):
    await make_player(1, gacha_draws=100)

    result = await gacha.perform_batch_draw(1, 100)

    assert [draw.pity_triggered for draw in result.draws[:99]] == [False] * 99
    assert [draw.pity_counter for draw in result.draws[:99]] == list(range(1, 100))
    last = result.draws[-1]
    assert last.pity_triggered
    assert last.power_rank == "Mythic"
    assert last.pity_counter == 0
    assert (await load_player(1)).pity_counter == 0


async def test_one_pity_per_batch(gacha, make_player, load_player, always_lowest):
    await make_player(1, gacha_draws=5, pity_counter=99)

    result = await gacha.perform_batch_draw(1, 5)

    assert sum(draw.pity_triggered for draw in result.draws) == 1
    assert result.draws[0].pity_triggered
    assert [draw.pity_counter for draw in result.draws] == [0, 1, 2, 3, 4]
    assert result.remaining_draws == 0
    assert (await load_player(1)).pity_counter == 4


async def test_one_pity_per_batch_across_threshold_crossings(
    db, txn, ranks, catalog, make_player, monkeypatch
):
    service = GachaService(db, txn, ranks, pity=PityTracker(2), rng=random.Random(5))
    monkeypatch.setattr(service.engine, "roll_rank", lambda: ranks.lowest)
    await make_player(1, gacha_draws=6)

    result = await service.perform_batch_draw(1, 6)

    assert sum(draw.pity_triggered for draw in result.draws) == 1
    assert all(draw.pity_counter <= 2 for draw in result.draws)


async def test_pity_invariant_over_many_draws(gacha, make_player, ranks):
    await make_player(1, gacha_draws=1000)

    draws = []
    for _ in range(10):
        draws.extend((await gacha.perform_batch_draw(1, 100)).draws)

    previous = 0
    for draw in draws:
        assert 0 <= draw.pity_counter <= 100
        if ranks.is_top_tier(draw.power_rank):
            assert draw.pity_counter == 0
        else:
            assert draw.pity_counter == min(previous + 1, 100)
        previous = draw.pity_counter


async def test_concurrent_batches_never_double_spend(
    gacha, make_player, load_player, count_history
):
    await make_player(1, gacha_draws=10)

    results = await asyncio.gather(
        gacha.perform_batch_draw(1, 6), gacha.perform_batch_draw(1, 6), return_exceptions=True
    )

    failures = [result for result in results if isinstance(result, BaseException)]
    successes = [result for result in results if not isinstance(result, BaseException)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientDrawsError)
    assert failures[0].available == 4
    assert successes[0].remaining_draws == 4
    assert (await load_player(1)).gacha_draws == 4
    assert await count_history(1) == 6


async def test_empty_rank_pool_rolls_back(
    db, txn, ranks, make_player, load_player, count_history, monkeypatch
):
    # Catalog with Normal powers only, so a forced Mythic draw has nothing to pick from
    await PowerService(db, txn, ranks).create_power(
        PowerCreate(name="Blade Mastery", rank="Normal", base_cp=55)
    )
    service = GachaService(db, txn, ranks, pity=PityTracker(100))
    monkeypatch.setattr(service.engine, "roll_rank", lambda: ranks.lowest)
    await make_player(1, gacha_draws=3, pity_counter=98)

    with pytest.raises(EmptyRankPoolError) as exc_info:
        await service.perform_batch_draw(1, 3)

    assert exc_info.value.rank == "Mythic"
    player = await load_player(1)
    assert player.gacha_draws == 3
    assert player.pity_counter == 98
    assert await count_history(1) == 0


async def test_unknown_player(gacha):
    with pytest.raises(PlayerNotFoundError):
        await gacha.perform_draw(404)


async def test_sequential_fallback(
    db, session_factory, ranks, catalog, make_player, load_player, count_history, monkeypatch
):
    txn = TransactionManager(session_factory, supports_atomic_batches=False)
    service = GachaService(db, txn, ranks, pity=PityTracker(100))
    monkeypatch.setattr(service.engine, "roll_rank", lambda: ranks.lowest)
    await make_player(1, gacha_draws=3, pity_counter=99)

    result = await service.perform_batch_draw(1, 3, DrawType.BONUS)

    assert len(result.draws) == 3
    assert sum(draw.pity_triggered for draw in result.draws) == 1
    assert result.remaining_draws == 0
    assert (await load_player(1)).gacha_draws == 0
    assert await count_history(1) == 3

    with pytest.raises(InsufficientDrawsError):
        await service.perform_batch_draw(1, 2)


@pytest.mark.parametrize("amount", [0, 101, -1])
async def test_purchase_rejects_invalid_amounts(gacha, make_player, load_player, amount: int):
    await make_player(1, coins=500_000, gacha_draws=2)

    with pytest.raises(InvalidAmountError):
        await gacha.purchase_draws(1, amount)

    player = await load_player(1)
    assert player.coins == 500_000
    assert player.gacha_draws == 2


async def test_purchase_reports_shortfall(gacha, make_player, load_player):
    await make_player(1, coins=42_000)

    with pytest.raises(InsufficientCoinsError) as exc_info:
        await gacha.purchase_draws(1, 100)

    assert exc_info.value.shortfall == 100_000 - 42_000
    assert (await load_player(1)).coins == 42_000


async def test_purchase_max_amount(gacha, make_player, load_player):
    await make_player(1, coins=100_000, gacha_draws=1)

    result = await gacha.purchase_draws(1, 100)

    assert result.total_cost == 100_000
    assert result.coins == 0
    assert result.gacha_draws == 101
    player = await load_player(1)
    assert player.coins == 0
    assert player.gacha_draws == 101


async def test_pity_history_and_stats(gacha, make_player, always_lowest):
    await make_player(1, gacha_draws=12, pity_counter=97)

    await gacha.perform_batch_draw(1, 12, DrawType.PAID)

    pity = await gacha.get_pity(1)
    assert pity.current_pity == 9
    assert pity.draws_until_guarantee == 91
    assert pity.guaranteed_rank == "Mythic"

    history = await gacha.get_history(1)
    assert len(history) == 10
    assert all(entry.draw_type == DrawType.PAID for entry in history)

    stats = await gacha.get_history_stats(1)
    assert stats.total_pulls == 12
    assert stats.rarest_pull == "Mythic"
    assert stats.rank_distribution == {"Normal": 11, "Mythic": 1}
    assert stats.best_pull_cp >= 5000


async def test_stats_for_player_without_draws(gacha, make_player):
    await make_player(1)
    stats = await gacha.get_history_stats(1)
    assert stats.total_pulls == 0
    assert stats.best_pull is None


def test_rates(gacha):
    rates = {rate.name: rate.rate for rate in gacha.get_rates()}
    assert rates == {"Normal": 70.0, "Rare": 20.0, "Epic": 7.0, "Legendary": 2.5, "Mythic": 0.5}


def test_roll_rank_never_returns_undrawable(ranks):
    engine = DrawEngine(ranks, PityTracker(100), random.Random(99))
    rolled = {engine.roll_rank().name for _ in range(5000)}
    assert rolled <= {rank.name for rank in ranks.drawable}
    assert "Normal" in rolled


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def test_roll_on_cumulative_boundary_picks_lower_rank():
    table = RankTable(
        [
            RankConfig(name="Low", order=1, min_cp=0, max_cp=99, gacha_weight=1),
            RankConfig(name="High", order=2, min_cp=100, max_cp=200, gacha_weight=1),
        ]
    )
    # 0.5 * total weight 2 lands exactly on Low's cumulative weight
    assert DrawEngine(table, PityTracker(100), FixedRandom(0.5)).roll_rank().name == "Low"
    assert DrawEngine(table, PityTracker(100), FixedRandom(0.75)).roll_rank().name == "High"


async def test_drawn_cp_stays_within_drawn_rank(gacha, ranks, catalog, make_player, monkeypatch):
    cycle = itertools.cycle(ranks.drawable)
    monkeypatch.setattr(gacha.engine, "roll_rank", lambda: next(cycle))
    await make_player(1, gacha_draws=500)

    draws = []
    for _ in range(5):
        draws.extend((await gacha.perform_batch_draw(1, 100)).draws)

    assert [draw.rank for draw in draws] == [draw.power_rank for draw in draws]
    for draw in draws:
        rank = ranks.get(draw.power_rank)
        assert rank.min_cp <= draw.combat_power <= rank.max_cp


async def test_every_mythic_pull_is_shown_as_mythic(
    gacha, ranks, catalog, make_player, monkeypatch
):
    monkeypatch.setattr(gacha.engine, "roll_rank", lambda: ranks.top_tier)
    await make_player(1, gacha_draws=300)

    draws = []
    for _ in range(3):
        draws.extend((await gacha.perform_batch_draw(1, 100)).draws)

    assert len(draws) == 300
    assert {draw.rank for draw in draws} == {"Mythic"}
    assert all(draw.combat_power >= ranks.get("Mythic").min_cp for draw in draws)
