from datetime import datetime

from pydantic import BaseModel, Field

from app.core.enums import DrawType


class GachaDrawRequest(BaseModel):
    """Request to spend draws."""

    count: int = Field(default=1, ge=1, description="Number of draws in the batch")
    draw_type: DrawType = DrawType.FREE


class GachaPurchaseRequest(BaseModel):
    amount: int = Field(description="Number of draws to buy")


class DrawResult(BaseModel):
    """Result of a single draw."""

    user_power_id: int
    power_id: int
    power_name: str
    power_rank: str
    """Rank of the catalog entry that was drawn"""
    rank: str
    """Rank resolved from the rolled CP, use this for display"""
    combat_power: int
    draw_type: DrawType
    pity_triggered: bool
    pity_counter: int
    """Counter after this draw"""


class BatchDrawResult(BaseModel):
    """All draws of one batch plus the balance left afterwards."""

    draws: list[DrawResult]
    remaining_draws: int
    pity_counter: int

    @property
    def pity_triggered_count(self) -> int:
        return sum(draw.pity_triggered for draw in self.draws)


class PurchaseResult(BaseModel):
    amount: int
    total_cost: int
    price_per_draw: int
    coins: int
    gacha_draws: int


class GachaPityResponse(BaseModel):
    """Response for checking pity progress."""

    current_pity: int
    max_pity: int
    draws_until_guarantee: int
    guaranteed_rank: str


class GachaHistoryEntry(BaseModel):
    power_id: int
    power_name: str
    power_rank: str
    combat_power: int
    draw_type: DrawType
    was_pity: bool
    drawn_at: datetime


class GachaHistoryStats(BaseModel):
    total_pulls: int = 0
    best_pull: str | None = None
    best_pull_cp: int = 0
    average_cp: int = 0
    rarest_pull: str | None = None
    rank_distribution: dict[str, int] = Field(default_factory=dict)
