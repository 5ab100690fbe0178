import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.db import get_db, get_transaction_manager
from app.core.ranks import RankTable
from app.core.transaction import TransactionManager
from app.services.arena import ArenaService
from app.services.event_log import EventLogService
from app.services.gacha import GachaService
from app.services.player import PlayerService
from app.services.power import PowerService
from app.services.rank_config import RankConfigService

DBSession = Annotated[AsyncSession, Depends(get_db)]
Transactions = Annotated[TransactionManager, Depends(get_transaction_manager)]


def require_admin(
    x_admin_token: Annotated[str | None, Header(description="Admin shared secret")] = None,
) -> None:
    if settings.admin_token is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin endpoints are disabled"
        )
    if x_admin_token is None or not secrets.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin token required")


def get_rank_config_service(db: DBSession) -> RankConfigService:
    return RankConfigService(db)


async def get_rank_table(
    service: Annotated[RankConfigService, Depends(get_rank_config_service)],
) -> RankTable:
    return await service.load_table()


Ranks = Annotated[RankTable, Depends(get_rank_table)]


def get_player_service(db: DBSession, txn: Transactions) -> PlayerService:
    return PlayerService(db, txn)


def get_gacha_service(db: DBSession, txn: Transactions, ranks: Ranks) -> GachaService:
    return GachaService(db, txn, ranks)


def get_power_service(db: DBSession, txn: Transactions, ranks: Ranks) -> PowerService:
    return PowerService(db, txn, ranks)


def get_arena_service(db: DBSession, txn: Transactions) -> ArenaService:
    return ArenaService(db, txn)


def get_event_log_service(db: DBSession) -> EventLogService:
    return EventLogService(db)
