import sys

import pytest
from sqlmodel import select

from app.core.exceptions import RankTableError
from app.core.ranks import DEFAULT_RANK_TABLE, RankConfig, RankTable, resolve_rank
from app.models.rank_config import RankConfigEntry
from app.services.rank_config import RankConfigService


@pytest.mark.parametrize("cp", [0, 1, 44, 45, 150, 151, 199, 5000, 499_999, 500_000, sys.maxsize])
def test_resolve_is_total(cp: int):
    assert resolve_rank(cp) in DEFAULT_RANK_TABLE


def test_resolve_floors_to_lowest_rank():
    assert resolve_rank(0) == "Normal"
    assert resolve_rank(44) == "Normal"


def test_resolve_boundaries():
    assert resolve_rank(199) == "Normal"
    assert resolve_rank(200) == "Rare"
    assert resolve_rank(5000) == "Mythic"
    assert resolve_rank(sys.maxsize) == "Absolute"


def test_resolve_is_monotonic():
    previous = 0
    for cp in range(0, 1_200_000, 997):
        order = DEFAULT_RANK_TABLE.resolve(cp).order
        assert order >= previous
        previous = order


def test_overlapping_ranges_favor_higher_rank():
    table = RankTable(
        [
            RankConfig(name="Low", order=1, min_cp=0, max_cp=100, gacha_weight=1),
            RankConfig(name="High", order=2, min_cp=50, max_cp=200, gacha_weight=1),
        ]
    )
    assert table.resolve(40).name == "Low"
    assert table.resolve(60).name == "High"
    with pytest.raises(RankTableError):
        table.validate_no_overlap()


def test_default_table_has_no_overlap():
    DEFAULT_RANK_TABLE.validate_no_overlap()


def test_top_tier_is_highest_drawable_rank():
    assert DEFAULT_RANK_TABLE.top_tier.name == "Mythic"
    assert DEFAULT_RANK_TABLE.is_top_tier("Mythic")
    assert not DEFAULT_RANK_TABLE.is_top_tier("Absolute")


def test_rates_cover_drawable_ranks_only():
    rates = DEFAULT_RANK_TABLE.rates()
    assert list(rates) == ["Normal", "Rare", "Epic", "Legendary", "Mythic"]
    assert sum(rates.values()) == pytest.approx(100)
    assert rates["Normal"] == pytest.approx(70)


@pytest.mark.parametrize(
    "ranks",
    [
        [],
        [
            RankConfig(name="A", order=1, min_cp=0, max_cp=10),
            RankConfig(name="A", order=2, min_cp=11, max_cp=20),
        ],
        [
            RankConfig(name="A", order=1, min_cp=0, max_cp=10),
            RankConfig(name="B", order=1, min_cp=11, max_cp=20),
        ],
        [RankConfig(name="A", order=1, min_cp=30, max_cp=10)],
    ],
)
def test_invalid_tables_are_rejected(ranks):
    with pytest.raises(RankTableError):
        RankTable(ranks)


def test_unknown_rank_lookup():
    with pytest.raises(RankTableError):
        DEFAULT_RANK_TABLE.get("Godlike")


async def test_empty_rank_configs_fall_back_to_defaults(db):
    table = await RankConfigService(db).load_table()
    assert [rank.name for rank in table] == [rank.name for rank in DEFAULT_RANK_TABLE]


async def test_seeded_rank_configs_load(db):
    service = RankConfigService(db)

    assert await service.seed_defaults() == len(DEFAULT_RANK_TABLE)
    assert await service.seed_defaults() == 0

    table = await service.load_table(strict=True)
    assert table.top_tier.name == "Mythic"
    assert table.get("Absolute").gacha_weight == 0


async def test_strict_load_rejects_overlapping_configs(db):
    service = RankConfigService(db)
    await service.seed_defaults()
    rare = (await db.exec(select(RankConfigEntry).where(RankConfigEntry.name == "Rare"))).one()
    rare.min_cp = 100
    db.add(rare)
    await db.commit()

    assert (await service.load_table()).resolve(120).name == "Rare"
    with pytest.raises(RankTableError):
        await service.load_table(strict=True)


def test_clamp_keeps_cp_inside_rank_band():
    mythic = DEFAULT_RANK_TABLE.get("Mythic")
    assert mythic.clamp(4500) == 5000
    assert mythic.clamp(5500) == 5500
    assert mythic.clamp(7000) == 6000
    assert resolve_rank(mythic.clamp(4999)) == "Mythic"
