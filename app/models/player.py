import datetime

import sqlmodel
from pydantic import field_serializer

from ._base import BaseModel


class Player(BaseModel, table=True):
    __tablename__: str = "players"

    id: int = sqlmodel.Field(
        primary_key=True,
        index=True,
        sa_type=sqlmodel.BigInteger,
        sa_column_kwargs={"autoincrement": False},
    )
    """Discord user ID"""
    name: str | None = sqlmodel.Field(default=None, nullable=True)
    """Discord username"""
    is_admin: bool = False

    coins: int = sqlmodel.Field(default=0, ge=0, sa_type=sqlmodel.BigInteger)
    bank_balance: int = sqlmodel.Field(default=0, ge=0, sa_type=sqlmodel.BigInteger)
    gacha_draws: int = sqlmodel.Field(default=0, ge=0)
    pity_counter: int = sqlmodel.Field(default=0, ge=0)
    """Draws since the last top-tier power"""
    equipped_power_id: int | None = sqlmodel.Field(default=None, nullable=True, index=True)
    """ID of the equipped user power, no foreign key to avoid a players/user_powers cycle"""

    battles_won: int = sqlmodel.Field(default=0, ge=0)
    battles_lost: int = sqlmodel.Field(default=0, ge=0)

    last_daily_at: datetime.datetime | None = sqlmodel.Field(
        default=None, nullable=True, sa_type=sqlmodel.DateTime(timezone=True)
    )

    @field_serializer("id")
    def serialize_id(self, value: int) -> str:
        """Serialize ID as string for JavaScript compatibility with large Discord IDs."""
        return str(value)
