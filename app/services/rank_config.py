from collections.abc import Sequence

from loguru import logger
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.ranks import DEFAULT_RANKS, RankConfig, RankTable
from app.models.rank_config import RankConfigEntry


def to_rank_config(entry: RankConfigEntry) -> RankConfig:
    return RankConfig(
        name=entry.name,
        order=entry.order,
        min_cp=entry.min_cp,
        max_cp=entry.max_cp,
        gacha_weight=entry.gacha_weight,
        color=entry.color,
        emoji=entry.emoji,
        price_multiplier=entry.price_multiplier,
        base_price=entry.base_price,
        cp_variance=entry.cp_variance,
    )


class RankConfigService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_entries(self) -> Sequence[RankConfigEntry]:
        result = await self.db.exec(select(RankConfigEntry).order_by(col(RankConfigEntry.order)))
        return result.all()

    async def load_table(self, *, strict: bool = False) -> RankTable:
        """Build the rank table from the database, falling back to the built-in ranks.

        With ``strict`` the table is also rejected when CP ranges overlap.
        """
        entries = await self.get_entries()
        if not entries:
            table = RankTable(DEFAULT_RANKS)
        else:
            table = RankTable(to_rank_config(entry) for entry in entries)

        if strict:
            table.validate_no_overlap()
        return table

    async def seed_defaults(self) -> int:
        """Insert any default rank that is missing. Returns how many were added."""
        existing = {entry.name for entry in await self.get_entries()}
        added = 0
        for rank in DEFAULT_RANKS:
            if rank.name in existing:
                continue
            self.db.add(
                RankConfigEntry(
                    **rank.model_dump(exclude={"cp_variance"}),
                    cp_variance=settings.default_cp_variance,
                )
            )
            added += 1

        if added:
            await self.db.commit()
            logger.info(f"Seeded {added} rank configs")
        return added
