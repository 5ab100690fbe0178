import sqlmodel

from ._base import BaseModel


class ArenaRanking(BaseModel, table=True):
    __tablename__: str = "arena_rankings"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(
        foreign_key="players.id", unique=True, index=True, sa_type=sqlmodel.BigInteger
    )
    rank_position: int = sqlmodel.Field(unique=True, index=True)
    """1 is the top of the ladder"""
    total_cp: int = sqlmodel.Field(default=0, ge=0)
