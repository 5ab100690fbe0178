import sqlmodel

from ._base import BaseModel


class RankConfigEntry(BaseModel, table=True):
    __tablename__: str = "rank_configs"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    name: str = sqlmodel.Field(max_length=20, unique=True)
    order: int = sqlmodel.Field(unique=True)
    min_cp: int = sqlmodel.Field(ge=0, index=True)
    max_cp: int = sqlmodel.Field(ge=0)
    gacha_weight: float = sqlmodel.Field(default=0.0, ge=0)
    """Zero means the rank cannot be drawn"""
    color: str = "#999999"
    emoji: str = "⚪"
    price_multiplier: float = 1.0
    base_price: int = sqlmodel.Field(default=0, ge=0)
    cp_variance: float = 0.1
