import os

# Settings are read at import time, so the environment must be ready before any app import
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["ENV"] = "prod"

import random  # noqa: E402
from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine  # noqa: E402
from sqlmodel import func, select  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from app.core.pity import PityTracker  # noqa: E402
from app.core.ranks import DEFAULT_RANK_TABLE, RankTable  # noqa: E402
from app.core.schema import create_all  # noqa: E402
from app.core.transaction import TransactionManager  # noqa: E402
from app.models.gacha_history import GachaHistory  # noqa: E402
from app.models.player import Player  # noqa: E402
from app.services.gacha import GachaService  # noqa: E402
from app.services.power import PowerService  # noqa: E402

type SessionFactory = Callable[[], AsyncSession]


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> SessionFactory:
    def factory() -> AsyncSession:
        return AsyncSession(engine, autocommit=False, autoflush=False, expire_on_commit=False)

    return factory


@pytest.fixture
async def db(session_factory: SessionFactory) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def txn(session_factory: SessionFactory) -> TransactionManager:
    return TransactionManager(session_factory)


@pytest.fixture
def ranks() -> RankTable:
    return DEFAULT_RANK_TABLE


@pytest.fixture
async def catalog(session_factory: SessionFactory, txn: TransactionManager, ranks: RankTable):
    async with session_factory() as session:
        await PowerService(session, txn, ranks).seed_default_catalog()


@pytest.fixture
def make_player(session_factory: SessionFactory) -> Callable[..., Awaitable[Player]]:
    async def make(player_id: int = 1, **fields) -> Player:
        async with session_factory() as session:
            player = Player(id=player_id, name=f"scout-{player_id}", **fields)
            session.add(player)
            await session.commit()
            return player

    return make


@pytest.fixture
def load_player(session_factory: SessionFactory) -> Callable[[int], Awaitable[Player]]:
    """Read a player through a fresh session so no stale identity map is involved."""

    async def load(player_id: int) -> Player:
        async with session_factory() as session:
            player = await session.get(Player, player_id)
            assert player is not None
            return player

    return load


@pytest.fixture
def count_history(session_factory: SessionFactory) -> Callable[[int], Awaitable[int]]:
    async def count(player_id: int) -> int:
        async with session_factory() as session:
            result = await session.exec(
                select(func.count()).select_from(GachaHistory).where(
                    GachaHistory.player_id == player_id
                )
            )
            return result.one()

    return count


@pytest.fixture
def gacha(db: AsyncSession, txn: TransactionManager, ranks: RankTable, catalog) -> GachaService:
    return GachaService(db, txn, ranks, pity=PityTracker(100), rng=random.Random(1234))
