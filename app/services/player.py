import datetime
import math
import random

from loguru import logger
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.enums import CoinSide, EventType
from app.core.exceptions import (
    CooldownError,
    GameError,
    InsufficientBankError,
    InsufficientCoinsError,
    PlayerAlreadyExistsError,
    PlayerNotFoundError,
)
from app.core.locks import bank_key, coins_key, gacha_key
from app.core.transaction import TransactionManager
from app.models._base import utc_now
from app.models.player import Player
from app.schemas.player import BalanceResult, CoinFlipResult, DailyRewardResult, TransferResult
from app.services.event_log import record_event
from app.utils.validation import require_amount


async def fetch_player(
    session: AsyncSession, player_id: int, *, for_update: bool = False
) -> Player:
    """Load a player inside a transaction, row-locked when ``for_update`` is set."""
    stmt = select(Player).where(Player.id == player_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)

    result = await session.exec(stmt)
    player = result.first()
    if player is None:
        raise PlayerNotFoundError(player_id)
    return player


async def fetch_players(session: AsyncSession, *player_ids: int) -> dict[int, Player]:
    """Row-lock several players in ascending id order, matching the keyed lock order."""
    return {
        player_id: await fetch_player(session, player_id, for_update=True)
        for player_id in sorted(set(player_ids))
    }


class PlayerService:
    def __init__(
        self,
        db: AsyncSession,
        txn: TransactionManager,
        *,
        starting_coins: int = settings.starting_coins,
        starting_draws: int = settings.starting_draws,
        daily_reward: int = settings.daily_reward,
        daily_cooldown_hours: int = settings.daily_cooldown_hours,
        min_coin_flip_bet: int = settings.min_coin_flip_bet,
        rng: random.Random | None = None,
    ) -> None:
        self.db = db
        self.txn = txn
        self.starting_coins = starting_coins
        self.starting_draws = starting_draws
        self.daily_reward = daily_reward
        self.daily_cooldown = datetime.timedelta(hours=daily_cooldown_hours)
        self.min_coin_flip_bet = min_coin_flip_bet
        self.rng = rng or random.Random()

    async def get_player(self, player_id: int) -> Player | None:
        result = await self.db.exec(select(Player).where(Player.id == player_id))
        return result.first()

    async def register(self, player_id: int, name: str | None = None) -> Player:
        """Create a player with the registration bonus of coins and draws."""

        async def operation(session: AsyncSession) -> Player:
            existing = await session.exec(select(Player).where(Player.id == player_id))
            if existing.first() is not None:
                raise PlayerAlreadyExistsError(player_id)

            player = Player(
                id=player_id,
                name=name,
                coins=self.starting_coins,
                gacha_draws=self.starting_draws,
            )
            session.add(player)
            await session.flush()
            record_event(
                session,
                player_id,
                EventType.REGISTER,
                coins=self.starting_coins,
                gacha_draws=self.starting_draws,
            )
            return player

        player = await self.txn.with_lock([coins_key(player_id), gacha_key(player_id)], operation)
        logger.info(f"Registered player {player_id} ({name})")
        return player

    async def get_or_create_player(self, player_id: int, name: str | None = None) -> Player:
        player = await self.get_player(player_id)
        if player is not None:
            return player
        try:
            return await self.register(player_id, name)
        except PlayerAlreadyExistsError:
            # Registered concurrently by another command
            player = await self.get_player(player_id)
            if player is None:
                raise PlayerNotFoundError(player_id) from None
            return player

    async def adjust_coins(self, player_id: int, delta: int, reason: str) -> BalanceResult:
        """Add (or with a negative delta, deduct) wallet coins. Never goes below zero."""

        async def operation(session: AsyncSession) -> BalanceResult:
            player = await fetch_player(session, player_id, for_update=True)
            old_coins = player.coins
            if old_coins + delta < 0:
                raise InsufficientCoinsError(required=-delta, available=old_coins)

            player.coins = old_coins + delta
            session.add(player)
            record_event(session, player_id, EventType.ADJUST_COINS, amount=delta, reason=reason)
            logger.info(
                f"Coins updated for player {player_id}: {old_coins} -> {player.coins} "
                f"(change: {delta}, reason: {reason})"
            )
            return BalanceResult(
                player_id=player_id, coins=player.coins, bank_balance=player.bank_balance
            )

        return await self.txn.with_lock(coins_key(player_id), operation)

    async def adjust_bank(self, player_id: int, delta: int, reason: str) -> BalanceResult:
        async def operation(session: AsyncSession) -> BalanceResult:
            player = await fetch_player(session, player_id, for_update=True)
            old_bank = player.bank_balance
            if old_bank + delta < 0:
                raise InsufficientBankError(required=-delta, available=old_bank)

            player.bank_balance = old_bank + delta
            session.add(player)
            record_event(session, player_id, EventType.ADJUST_BANK, amount=delta, reason=reason)
            logger.info(
                f"Bank updated for player {player_id}: {old_bank} -> {player.bank_balance} "
                f"(change: {delta}, reason: {reason})"
            )
            return BalanceResult(
                player_id=player_id, coins=player.coins, bank_balance=player.bank_balance
            )

        return await self.txn.with_lock(bank_key(player_id), operation)

    async def deposit(self, player_id: int, amount: int) -> BalanceResult:
        """Move coins from the wallet into the bank."""
        require_amount(amount)

        async def operation(session: AsyncSession) -> BalanceResult:
            player = await fetch_player(session, player_id, for_update=True)
            if player.coins < amount:
                raise InsufficientCoinsError(required=amount, available=player.coins)

            player.coins -= amount
            player.bank_balance += amount
            session.add(player)
            record_event(session, player_id, EventType.DEPOSIT, amount=amount)
            logger.info(
                f"Deposit for player {player_id}: {amount} coins "
                f"(wallet: {player.coins}, bank: {player.bank_balance})"
            )
            return BalanceResult(
                player_id=player_id, coins=player.coins, bank_balance=player.bank_balance
            )

        return await self.txn.with_lock([coins_key(player_id), bank_key(player_id)], operation)

    async def withdraw(self, player_id: int, amount: int) -> BalanceResult:
        """Move coins from the bank back into the wallet."""
        require_amount(amount)

        async def operation(session: AsyncSession) -> BalanceResult:
            player = await fetch_player(session, player_id, for_update=True)
            if player.bank_balance < amount:
                raise InsufficientBankError(required=amount, available=player.bank_balance)

            player.bank_balance -= amount
            player.coins += amount
            session.add(player)
            record_event(session, player_id, EventType.WITHDRAW, amount=amount)
            logger.info(
                f"Withdrawal for player {player_id}: {amount} coins "
                f"(wallet: {player.coins}, bank: {player.bank_balance})"
            )
            return BalanceResult(
                player_id=player_id, coins=player.coins, bank_balance=player.bank_balance
            )

        return await self.txn.with_lock([coins_key(player_id), bank_key(player_id)], operation)

    async def transfer_coins(self, from_id: int, to_id: int, amount: int) -> TransferResult:
        """Give coins to another player. Both wallets are locked in a fixed order."""
        require_amount(amount)
        if from_id == to_id:
            raise GameError("Cannot transfer coins to yourself")

        async def operation(session: AsyncSession) -> TransferResult:
            players = await fetch_players(session, from_id, to_id)
            sender, receiver = players[from_id], players[to_id]
            if sender.coins < amount:
                raise InsufficientCoinsError(required=amount, available=sender.coins)

            sender.coins -= amount
            receiver.coins += amount
            session.add(sender)
            session.add(receiver)
            record_event(session, from_id, EventType.TRANSFER_COINS, amount=-amount, to=to_id)
            record_event(session, to_id, EventType.TRANSFER_COINS, amount=amount, source=from_id)
            logger.info(f"Transferred {amount} coins from player {from_id} to {to_id}")
            return TransferResult(
                from_player_id=from_id,
                to_player_id=to_id,
                amount=amount,
                from_balance=sender.coins,
                to_balance=receiver.coins,
            )

        return await self.txn.with_lock([coins_key(from_id), coins_key(to_id)], operation)

    async def grant_draws(self, player_id: int, amount: int, reason: str) -> int:
        """Add draws to a player's balance and return the new balance."""
        require_amount(amount)

        async def operation(session: AsyncSession) -> int:
            player = await fetch_player(session, player_id, for_update=True)
            old_draws = player.gacha_draws
            player.gacha_draws += amount
            session.add(player)
            record_event(session, player_id, EventType.GRANT_DRAWS, amount=amount, reason=reason)
            logger.info(
                f"Gacha draws granted to player {player_id}: {old_draws} -> {player.gacha_draws} "
                f"(reason: {reason})"
            )
            return player.gacha_draws

        return await self.txn.with_lock(gacha_key(player_id), operation)

    async def claim_daily(self, player_id: int) -> DailyRewardResult:
        """Pay the daily coin reward, at most once per cooldown window."""

        async def operation(session: AsyncSession) -> DailyRewardResult:
            player = await fetch_player(session, player_id, for_update=True)
            now = utc_now()
            last = player.last_daily_at
            if last is not None:
                # SQLite hands back naive datetimes
                if last.tzinfo is None:
                    last = last.replace(tzinfo=datetime.UTC)
                ready_at = last + self.daily_cooldown
                if now < ready_at:
                    raise CooldownError(
                        "Daily reward", retry_after=math.ceil((ready_at - now).total_seconds())
                    )

            player.coins += self.daily_reward
            player.last_daily_at = now
            session.add(player)
            record_event(session, player_id, EventType.DAILY_REWARD, amount=self.daily_reward)
            logger.info(
                f"Player {player_id} claimed daily reward of {self.daily_reward} coins "
                f"(coins: {player.coins})"
            )
            return DailyRewardResult(
                player_id=player_id,
                reward=self.daily_reward,
                coins=player.coins,
                next_claim_at=now + self.daily_cooldown,
            )

        return await self.txn.with_lock(coins_key(player_id), operation)

    async def coin_flip(
        self, player_id: int, bet: int, choice: CoinSide | None = None
    ) -> CoinFlipResult:
        """Even-money coin flip: a win adds the bet to the wallet, a loss takes it."""
        require_amount(bet, minimum=self.min_coin_flip_bet)

        async def operation(session: AsyncSession) -> CoinFlipResult:
            player = await fetch_player(session, player_id, for_update=True)
            if player.coins < bet:
                raise InsufficientCoinsError(required=bet, available=player.coins)

            called = choice or self.rng.choice(list(CoinSide))
            outcome = self.rng.choice(list(CoinSide))
            won = called == outcome
            net_change = bet if won else -bet

            player.coins += net_change
            session.add(player)
            record_event(
                session,
                player_id,
                EventType.COIN_FLIP,
                bet=bet,
                choice=called,
                outcome=outcome,
                net_change=net_change,
            )
            logger.info(
                f"Player {player_id} flipped {bet} coins: {called} vs {outcome}, "
                f"{'won' if won else 'lost'} (coins: {player.coins})"
            )
            return CoinFlipResult(
                player_id=player_id,
                bet=bet,
                choice=called,
                outcome=outcome,
                won=won,
                net_change=net_change,
                coins=player.coins,
            )

        return await self.txn.with_lock(coins_key(player_id), operation)
