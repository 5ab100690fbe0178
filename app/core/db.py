from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.transaction import TransactionManager

engine = create_async_engine(settings.db_url)


def get_session() -> AsyncSession:
    return AsyncSession(engine, autocommit=False, autoflush=False, expire_on_commit=False)


transaction_manager = TransactionManager(get_session)


async def get_db() -> AsyncGenerator[AsyncSession]:
    async with get_session() as session:
        yield session


def get_transaction_manager() -> TransactionManager:
    return transaction_manager
