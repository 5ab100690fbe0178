import random
from collections import Counter
from collections.abc import Sequence

from loguru import logger
from sqlalchemy import update
from sqlmodel import col, desc, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.cp import generate_cp
from app.core.enums import DrawType, EventType
from app.core.exceptions import (
    ConcurrentModificationError,
    EmptyRankPoolError,
    InsufficientCoinsError,
    InsufficientDrawsError,
    PlayerNotFoundError,
    RankTableError,
)
from app.core.locks import coins_key, gacha_key
from app.core.pity import PityState, PityTracker
from app.core.ranks import RankConfig, RankTable
from app.core.transaction import TransactionManager
from app.models.gacha_history import GachaHistory
from app.models.player import Player
from app.models.power import Power
from app.models.user_power import UserPower
from app.schemas.gacha import (
    BatchDrawResult,
    DrawResult,
    GachaHistoryEntry,
    GachaHistoryStats,
    GachaPityResponse,
    PurchaseResult,
)
from app.schemas.rank import RankRate
from app.services.event_log import record_event
from app.services.player import fetch_player
from app.utils.validation import require_amount


class DrawEngine:
    """Decides and records a single draw.

    Never manages its own lock or transaction: it always runs inside the caller's
    locked session.
    """

    def __init__(
        self, ranks: RankTable, pity: PityTracker, rng: random.Random | None = None
    ) -> None:
        self.ranks = ranks
        self.pity = pity
        self.rng = rng or random.Random()

    def roll_rank(self) -> RankConfig:
        """Weighted roll over the drawable ranks, walked in rank order."""
        drawable = self.ranks.drawable
        total = self.ranks.total_weight
        if not drawable or total <= 0:
            raise RankTableError("Rank table has no drawable ranks")

        roll = self.rng.random() * total
        cumulative = 0.0
        for rank in drawable:
            cumulative += rank.gacha_weight
            if roll <= cumulative:
                return rank
        # Float accumulation can leave the last bucket a hair short of the total
        return drawable[-1]

    def pick_power(self, rank: RankConfig, catalog: Sequence[Power]) -> Power:
        pool = [power for power in catalog if power.rank == rank.name]
        if not pool:
            logger.error(f"Gacha catalog has no powers for drawn rank {rank.name}")
            raise EmptyRankPoolError(rank.name)
        return self.rng.choice(pool)

    async def draw_once(
        self,
        session: AsyncSession,
        player: Player,
        draw_type: DrawType,
        state: PityState,
        catalog: Sequence[Power],
    ) -> tuple[DrawResult, PityState]:
        step = self.pity.advance(state)
        rank = self.ranks.top_tier if step.forced else self.roll_rank()

        power = self.pick_power(rank, catalog)
        # Variance must not push a drawn power out of the rank it was drawn from
        cp = rank.clamp(generate_cp(power.base_cp, rank.cp_variance, self.rng))

        new_state = self.pity.settle(state, step, top_tier=self.ranks.is_top_tier(rank.name))
        player.pity_counter = new_state.counter
        session.add(player)

        user_power = UserPower(player_id=player.id, power_id=power.id, combat_power=cp)
        session.add(user_power)
        session.add(
            GachaHistory(
                player_id=player.id,
                power_id=power.id,
                power_name=power.name,
                power_rank=power.rank,
                combat_power=cp,
                draw_type=draw_type,
                was_pity=step.forced,
            )
        )
        await session.flush()

        result = DrawResult(
            user_power_id=user_power.id,
            power_id=power.id,
            power_name=power.name,
            power_rank=power.rank,
            rank=self.ranks.resolve(cp).name,
            combat_power=cp,
            draw_type=draw_type,
            pity_triggered=step.forced,
            pity_counter=new_state.counter,
        )
        return result, new_state


class GachaService:
    def __init__(
        self,
        db: AsyncSession,
        txn: TransactionManager,
        ranks: RankTable,
        *,
        pity: PityTracker | None = None,
        rng: random.Random | None = None,
        draw_price: int = settings.draw_price,
        max_purchase: int = settings.max_draw_purchase,
    ) -> None:
        self.db = db
        self.txn = txn
        self.ranks = ranks
        self.pity = pity or PityTracker(settings.pity_threshold)
        self.engine = DrawEngine(ranks, self.pity, rng)
        self.draw_price = draw_price
        self.max_purchase = max_purchase

    async def load_catalog(self, session: AsyncSession) -> Sequence[Power]:
        """All drawable powers, fetched once per batch."""
        drawable = [rank.name for rank in self.ranks.drawable]
        result = await session.exec(
            select(Power).where(col(Power.rank).in_(drawable)).order_by(col(Power.base_cp))
        )
        return result.all()

    async def perform_draw(
        self, player_id: int, draw_type: DrawType = DrawType.FREE
    ) -> DrawResult:
        batch = await self.perform_batch_draw(player_id, 1, draw_type)
        return batch.draws[0]

    async def perform_batch_draw(
        self, player_id: int, count: int, draw_type: DrawType = DrawType.FREE
    ) -> BatchDrawResult:
        """Spend ``count`` draws as one unit.

        The whole batch runs under the player's gacha lock and one transaction: the balance
        is re-read and deducted once up front, and any failure rolls every draw back.

        Raises:
            InsufficientDrawsError: If the balance cannot cover the batch; nothing is consumed.
            EmptyRankPoolError: If a drawn rank has no catalog entries.
        """
        require_amount(count)

        if not self.txn.supports_atomic_batches and count > 1:
            return await self._draw_sequentially(player_id, count, draw_type)

        async def operation(session: AsyncSession) -> BatchDrawResult:
            return await self._draw_batch(session, player_id, count, draw_type)

        result = await self.txn.with_lock(gacha_key(player_id), operation)
        logger.info(
            f"Player {player_id} drew {count}x ({draw_type}), "
            f"{result.pity_triggered_count} pity, {result.remaining_draws} draws left"
        )
        return result

    async def _draw_batch(
        self,
        session: AsyncSession,
        player_id: int,
        count: int,
        draw_type: DrawType,
        *,
        forced_used: bool = False,
    ) -> BatchDrawResult:
        # Reads taken before the lock are not trusted, re-read under the row lock
        player = await fetch_player(session, player_id, for_update=True)
        if player.gacha_draws < count:
            raise InsufficientDrawsError(required=count, available=player.gacha_draws)

        deducted = await session.exec(
            update(Player)  # pyright: ignore[reportArgumentType]
            .where(col(Player.id) == player_id, col(Player.gacha_draws) >= count)
            .values(gacha_draws=col(Player.gacha_draws) - count)
        )
        if deducted.rowcount != 1:  # pyright: ignore[reportAttributeAccessIssue]
            raise ConcurrentModificationError(
                f"Draw balance of player {player_id} changed during the batch"
            )
        await session.refresh(player)

        catalog = await self.load_catalog(session)
        state = PityState(
            counter=self.pity.start_batch(player.pity_counter).counter, forced_used=forced_used
        )

        draws: list[DrawResult] = []
        for _ in range(count):
            draw, state = await self.engine.draw_once(session, player, draw_type, state, catalog)
            draws.append(draw)

        record_event(
            session,
            player_id,
            EventType.GACHA_DRAW,
            count=count,
            draw_type=draw_type.value,
            user_power_ids=[draw.user_power_id for draw in draws],
            pity_triggered=any(draw.pity_triggered for draw in draws),
        )
        return BatchDrawResult(
            draws=draws, remaining_draws=player.gacha_draws, pity_counter=player.pity_counter
        )

    async def _draw_sequentially(
        self, player_id: int, count: int, draw_type: DrawType
    ) -> BatchDrawResult:
        """Fallback for stores that cannot roll back a whole batch.

        Each draw is its own transaction with its own balance check. The full balance is
        verified first so an unaffordable batch still consumes nothing.
        """
        available = await self.txn.with_lock(
            gacha_key(player_id), lambda session: self._current_draws(session, player_id)
        )
        if available < count:
            raise InsufficientDrawsError(required=count, available=available)

        draws: list[DrawResult] = []
        remaining = available
        pity_counter = 0
        forced_used = False
        for _ in range(count):

            async def operation(session: AsyncSession, forced_used: bool = forced_used):
                return await self._draw_batch(
                    session, player_id, 1, draw_type, forced_used=forced_used
                )

            single = await self.txn.with_lock(gacha_key(player_id), operation)
            draws.extend(single.draws)
            remaining = single.remaining_draws
            pity_counter = single.pity_counter
            forced_used = forced_used or single.draws[0].pity_triggered

        logger.info(f"Player {player_id} drew {count}x ({draw_type}) one transaction at a time")
        return BatchDrawResult(draws=draws, remaining_draws=remaining, pity_counter=pity_counter)

    @staticmethod
    async def _current_draws(session: AsyncSession, player_id: int) -> int:
        player = await fetch_player(session, player_id, for_update=True)
        return player.gacha_draws

    async def purchase_draws(self, player_id: int, amount: int) -> PurchaseResult:
        """Exchange coins for draws.

        Raises:
            InvalidAmountError: If amount is not an integer between 1 and the purchase cap.
            InsufficientCoinsError: If the player cannot afford it; nothing is consumed.
        """
        require_amount(amount, maximum=self.max_purchase)
        total_cost = amount * self.draw_price

        async def operation(session: AsyncSession) -> PurchaseResult:
            player = await fetch_player(session, player_id, for_update=True)
            if player.coins < total_cost:
                raise InsufficientCoinsError(required=total_cost, available=player.coins)

            player.coins -= total_cost
            player.gacha_draws += amount
            session.add(player)
            record_event(
                session,
                player_id,
                EventType.PURCHASE_DRAWS,
                amount=amount,
                total_cost=total_cost,
                price_per_draw=self.draw_price,
            )
            return PurchaseResult(
                amount=amount,
                total_cost=total_cost,
                price_per_draw=self.draw_price,
                coins=player.coins,
                gacha_draws=player.gacha_draws,
            )

        result = await self.txn.with_lock([coins_key(player_id), gacha_key(player_id)], operation)
        logger.info(
            f"Player {player_id} bought {amount} draws for {total_cost} coins "
            f"(coins: {result.coins}, draws: {result.gacha_draws})"
        )
        return result

    async def get_pity(self, player_id: int) -> GachaPityResponse:
        result = await self.db.exec(select(Player).where(Player.id == player_id))
        player = result.first()
        if player is None:
            raise PlayerNotFoundError(player_id)

        return GachaPityResponse(
            current_pity=player.pity_counter,
            max_pity=self.pity.threshold,
            draws_until_guarantee=self.pity.remaining(player.pity_counter),
            guaranteed_rank=self.ranks.top_tier.name,
        )

    async def get_history(self, player_id: int, limit: int = 10) -> list[GachaHistoryEntry]:
        result = await self.db.exec(
            select(GachaHistory)
            .where(GachaHistory.player_id == player_id)
            .order_by(desc(col(GachaHistory.drawn_at)), desc(col(GachaHistory.id)))
            .limit(limit)
        )
        return [
            GachaHistoryEntry(
                power_id=entry.power_id,
                power_name=entry.power_name,
                power_rank=entry.power_rank,
                combat_power=entry.combat_power,
                draw_type=entry.draw_type,
                was_pity=entry.was_pity,
                drawn_at=entry.drawn_at,
            )
            for entry in result.all()
        ]

    def _rank_order(self, name: str) -> int:
        return self.ranks.order_of(name) if name in self.ranks else 0

    async def get_history_stats(self, player_id: int) -> GachaHistoryStats:
        result = await self.db.exec(
            select(GachaHistory).where(GachaHistory.player_id == player_id)
        )
        history = result.all()
        if not history:
            return GachaHistoryStats()

        best = max(history, key=lambda entry: entry.combat_power)
        rarest = max(history, key=lambda entry: self._rank_order(entry.power_rank))
        distribution = Counter(entry.power_rank for entry in history)

        return GachaHistoryStats(
            total_pulls=len(history),
            best_pull=best.power_name,
            best_pull_cp=best.combat_power,
            average_cp=round(sum(entry.combat_power for entry in history) / len(history)),
            rarest_pull=rarest.power_rank,
            rank_distribution=dict(
                sorted(distribution.items(), key=lambda item: self._rank_order(item[0]))
            ),
        )

    def get_rates(self) -> list[RankRate]:
        rates = self.ranks.rates()
        return [
            RankRate(
                name=rank.name,
                order=rank.order,
                min_cp=rank.min_cp,
                max_cp=rank.max_cp,
                rate=round(rates[rank.name], 2),
                color=rank.color,
                emoji=rank.emoji,
            )
            for rank in self.ranks.drawable
        ]
