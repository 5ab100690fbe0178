from enum import StrEnum


class DrawType(StrEnum):
    FREE = "free"
    PAID = "paid"
    BONUS = "bonus"


class EventType(StrEnum):
    REGISTER = "register"
    GACHA_DRAW = "gacha_draw"
    PURCHASE_DRAWS = "purchase_draws"
    GRANT_DRAWS = "grant_draws"
    ADJUST_COINS = "adjust_coins"
    ADJUST_BANK = "adjust_bank"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER_COINS = "transfer_coins"
    PURCHASE_POWER = "purchase_power"
    REMOVE_POWER = "remove_power"
    EQUIP_POWER = "equip_power"
    UNEQUIP_POWER = "unequip_power"
    ARENA_SWAP = "arena_swap"
    MERGE_POWERS = "merge_powers"
    DAILY_REWARD = "daily_reward"
    COIN_FLIP = "coin_flip"


class CoinSide(StrEnum):
    HEADS = "heads"
    TAILS = "tails"


class Resource(StrEnum):
    COINS = "coins"
    BANK = "bank_balance"
    DRAWS = "gacha_draws"
