from datetime import datetime

import sqlmodel

from app.core.enums import DrawType
from ._base import BaseModel, utc_now


class GachaHistory(BaseModel, table=True):
    """Append-only record of a completed draw, kept for display and audit only."""

    __tablename__: str = "gacha_history"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(
        foreign_key="players.id", index=True, sa_type=sqlmodel.BigInteger
    )
    power_id: int = sqlmodel.Field(foreign_key="powers.id")
    power_name: str = sqlmodel.Field(max_length=100)
    power_rank: str = sqlmodel.Field(max_length=20)
    """Rank of the catalog entry that was drawn"""
    combat_power: int
    draw_type: DrawType = DrawType.FREE
    was_pity: bool = False
    """Whether this draw was forced by the pity system"""
    drawn_at: datetime = sqlmodel.Field(
        default_factory=utc_now, index=True, sa_type=sqlmodel.DateTime(timezone=True)
    )
