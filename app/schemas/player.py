import datetime

from pydantic import BaseModel, Field

from app.core.enums import CoinSide


class PlayerCreate(BaseModel):
    id: int = Field(description="Discord user ID")
    name: str | None = Field(default=None, max_length=32)


class CurrencyAdjustment(BaseModel):
    """Schema for adjusting a balance by a signed amount."""

    amount: int = Field(description="Signed change, negative to deduct")
    reason: str = Field(min_length=1, max_length=255, description="Reason for adjustment")


class AmountRequest(BaseModel):
    amount: int = Field(gt=0, description="Amount to move (must be positive)")


class TransferRequest(BaseModel):
    to_player_id: int
    amount: int = Field(gt=0, description="Coins to give (must be positive)")


class DrawGrant(BaseModel):
    amount: int = Field(gt=0, description="Draws to grant (must be positive)")
    reason: str = Field(min_length=1, max_length=255)


class BalanceResult(BaseModel):
    """Wallet and bank after an economy mutation."""

    player_id: int
    coins: int
    bank_balance: int


class TransferResult(BaseModel):
    from_player_id: int
    to_player_id: int
    amount: int
    from_balance: int
    to_balance: int


class DailyRewardResult(BaseModel):
    player_id: int
    reward: int
    coins: int
    next_claim_at: datetime.datetime


class CoinFlipRequest(BaseModel):
    amount: int = Field(gt=0, description="Coins to bet")
    choice: CoinSide | None = Field(default=None, description="Side to call, random when omitted")


class CoinFlipResult(BaseModel):
    player_id: int
    bet: int
    choice: CoinSide
    outcome: CoinSide
    won: bool
    net_change: int
    coins: int
