from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    db_url: str
    env: Literal["prod", "dev"] = "prod"

    # Shared secret for admin-only endpoints, admin routes are disabled when unset
    admin_token: str | None = None

    # Gacha
    pity_threshold: int = 100
    draw_price: int = 1000
    max_draw_purchase: int = 100
    default_cp_variance: float = 0.1

    # Registration bonus
    starting_coins: int = 1000
    starting_draws: int = 10

    # Store purchases grant base CP unless a variance is configured
    store_cp_variance: float = 0.0

    # Ledger rewards and gambling
    daily_reward: int = 500
    daily_cooldown_hours: int = 6
    min_coin_flip_bet: int = 5

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


load_dotenv()
settings = Config()  # pyright: ignore[reportCallIssue]
