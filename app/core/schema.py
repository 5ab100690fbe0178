from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

# Imported for their side effect of registering tables on SQLModel.metadata
from app.models.arena_ranking import ArenaRanking  # noqa: F401
from app.models.event_log import EventLog  # noqa: F401
from app.models.gacha_history import GachaHistory  # noqa: F401
from app.models.player import Player  # noqa: F401
from app.models.power import Power  # noqa: F401
from app.models.rank_config import RankConfigEntry  # noqa: F401
from app.models.user_power import UserPower  # noqa: F401

metadata = SQLModel.metadata


async def create_all(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def drop_all(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
