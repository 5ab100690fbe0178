from datetime import datetime

from pydantic import BaseModel, Field


class PowerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    rank: str
    base_cp: int = Field(ge=1)
    base_price: int = Field(default=0, ge=0)


class OwnedPower(BaseModel):
    """An owned power with its rank derived from CP at read time."""

    id: int
    power_id: int
    name: str
    description: str
    rank: str
    combat_power: int
    acquired_at: datetime
    equipped: bool = False


class EquipRequest(BaseModel):
    user_power_id: int


class PowerPurchaseRequest(BaseModel):
    power_id: int


class PowerPurchaseResult(BaseModel):
    power: OwnedPower
    price: int
    remaining_coins: int


class MergeRequest(BaseModel):
    main_id: int = Field(description="User power that absorbs the others")
    sacrifice_ids: list[int] = Field(min_length=1, max_length=10)


class MergeResult(BaseModel):
    power: OwnedPower
    previous_cp: int
    previous_rank: str
    consumed_ids: list[int]
    cost: int
    remaining_coins: int
