import random
from collections.abc import Sequence

from loguru import logger
from sqlmodel import col, desc, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.catalog import DEFAULT_POWERS
from app.core.config import settings
from app.core.cp import generate_cp, merge_cost, merge_cp
from app.core.enums import EventType
from app.core.exceptions import GameError, InsufficientCoinsError, PowerNotFoundError
from app.core.locks import arena_key, coins_key, equip_key
from app.core.ranks import RankTable
from app.core.transaction import TransactionManager
from app.models.player import Player
from app.models.power import Power
from app.models.user_power import UserPower
from app.schemas.power import MergeResult, OwnedPower, PowerCreate, PowerPurchaseResult
from app.services.arena import refresh_total_cp
from app.services.event_log import record_event
from app.services.player import fetch_player


async def fetch_owned_power(
    session: AsyncSession, player_id: int, user_power_id: int
) -> UserPower:
    result = await session.exec(
        select(UserPower).where(UserPower.id == user_power_id, UserPower.player_id == player_id)
    )
    user_power = result.first()
    if user_power is None:
        raise PowerNotFoundError(user_power_id)
    return user_power


class PowerService:
    def __init__(
        self,
        db: AsyncSession,
        txn: TransactionManager,
        ranks: RankTable,
        *,
        rng: random.Random | None = None,
        store_cp_variance: float = settings.store_cp_variance,
    ) -> None:
        self.db = db
        self.txn = txn
        self.ranks = ranks
        self.rng = rng or random.Random()
        self.store_cp_variance = store_cp_variance

    def to_owned(self, user_power: UserPower, *, equipped: bool = False) -> OwnedPower:
        """Build the read model, deriving the rank from CP rather than the catalog entry."""
        return OwnedPower(
            id=user_power.id,
            power_id=user_power.power_id,
            name=user_power.power.name,
            description=user_power.power.description,
            rank=self.ranks.resolve(user_power.combat_power).name,
            combat_power=user_power.combat_power,
            acquired_at=user_power.acquired_at,
            equipped=equipped,
        )

    def price_of(self, power: Power) -> int:
        rank = self.ranks.get(power.rank)
        if power.base_price <= 0:
            return rank.base_price
        return round(power.base_price * rank.price_multiplier)

    async def list_catalog(self, rank: str | None = None) -> Sequence[Power]:
        query = select(Power)
        if rank is not None:
            query = query.where(Power.rank == rank)
        result = await self.db.exec(query.order_by(col(Power.base_cp), col(Power.id)))
        return result.all()

    async def get_power(self, power_id: int) -> Power | None:
        result = await self.db.exec(select(Power).where(Power.id == power_id))
        return result.first()

    async def create_power(self, data: PowerCreate) -> Power:
        # Raises RankTableError for unknown ranks
        self.ranks.get(data.rank)

        power = Power(**data.model_dump())
        self.db.add(power)
        await self.db.commit()
        await self.db.refresh(power)
        logger.info(f"Created power {power} in rank {power.rank}")
        return power

    async def seed_default_catalog(self) -> int:
        """Insert the default catalog entries that are missing. Returns how many were added."""
        result = await self.db.exec(select(Power.name))
        existing = set(result.all())

        added = 0
        for seed in DEFAULT_POWERS:
            if seed.name in existing or seed.rank not in self.ranks:
                continue
            self.db.add(
                Power(
                    name=seed.name,
                    description=seed.description,
                    rank=seed.rank,
                    base_cp=seed.base_cp,
                    base_price=seed.base_price,
                )
            )
            added += 1

        if added:
            await self.db.commit()
            logger.info(f"Seeded {added} catalog powers")
        return added

    async def list_player_powers(self, player_id: int) -> list[OwnedPower]:
        player = await self.db.get(Player, player_id)
        equipped_id = player.equipped_power_id if player is not None else None

        result = await self.db.exec(
            select(UserPower)
            .where(UserPower.player_id == player_id)
            .order_by(desc(col(UserPower.combat_power)), col(UserPower.id))
        )
        return [
            self.to_owned(user_power, equipped=user_power.id == equipped_id)
            for user_power in result.unique().all()
        ]

    async def equip(self, player_id: int, user_power_id: int) -> OwnedPower:
        async def operation(session: AsyncSession) -> OwnedPower:
            player = await fetch_player(session, player_id, for_update=True)
            user_power = await fetch_owned_power(session, player_id, user_power_id)
            if player.equipped_power_id == user_power.id:
                raise GameError(f"{user_power.power.name} is already equipped")

            player.equipped_power_id = user_power.id
            session.add(player)
            await session.flush()
            await refresh_total_cp(session, player_id)
            record_event(session, player_id, EventType.EQUIP_POWER, user_power_id=user_power.id)
            logger.info(f"Player {player_id} equipped {user_power.power.name} ({user_power.id})")
            return self.to_owned(user_power, equipped=True)

        return await self.txn.with_lock([equip_key(player_id), arena_key(player_id)], operation)

    async def unequip(self, player_id: int) -> int | None:
        """Clear the equipped power. Returns the previously equipped user power id."""

        async def operation(session: AsyncSession) -> int | None:
            player = await fetch_player(session, player_id, for_update=True)
            previous = player.equipped_power_id
            if previous is None:
                return None

            player.equipped_power_id = None
            session.add(player)
            await session.flush()
            await refresh_total_cp(session, player_id)
            record_event(session, player_id, EventType.UNEQUIP_POWER, user_power_id=previous)
            logger.info(f"Player {player_id} unequipped user power {previous}")
            return previous

        return await self.txn.with_lock([equip_key(player_id), arena_key(player_id)], operation)

    async def remove_power(self, player_id: int, user_power_id: int) -> None:
        """Consume an owned power, unequipping it first when needed."""

        async def operation(session: AsyncSession) -> None:
            player = await fetch_player(session, player_id, for_update=True)
            user_power = await fetch_owned_power(session, player_id, user_power_id)
            was_equipped = player.equipped_power_id == user_power.id
            if was_equipped:
                player.equipped_power_id = None
                session.add(player)

            await session.delete(user_power)
            await session.flush()
            if was_equipped:
                await refresh_total_cp(session, player_id)

            record_event(
                session,
                player_id,
                EventType.REMOVE_POWER,
                user_power_id=user_power_id,
                power_id=user_power.power_id,
                combat_power=user_power.combat_power,
            )
            logger.info(f"Player {player_id} lost user power {user_power_id}")

        await self.txn.with_lock([equip_key(player_id), arena_key(player_id)], operation)

    async def purchase_power(self, player_id: int, power_id: int) -> PowerPurchaseResult:
        """Buy a catalog power from the store with wallet coins."""

        async def operation(session: AsyncSession) -> PowerPurchaseResult:
            power = await session.get(Power, power_id)
            if power is None:
                raise PowerNotFoundError(power_id)

            price = self.price_of(power)
            player = await fetch_player(session, player_id, for_update=True)
            if player.coins < price:
                raise InsufficientCoinsError(required=price, available=player.coins)

            player.coins -= price
            session.add(player)
            user_power = UserPower(
                player_id=player_id,
                power_id=power.id,
                combat_power=generate_cp(power.base_cp, self.store_cp_variance, self.rng),
            )
            user_power.power = power
            session.add(user_power)
            await session.flush()

            record_event(
                session,
                player_id,
                EventType.PURCHASE_POWER,
                power_id=power.id,
                user_power_id=user_power.id,
                price=price,
            )
            logger.info(
                f"Player {player_id} bought {power} for {price} coins (coins left: {player.coins})"
            )
            return PowerPurchaseResult(
                power=self.to_owned(user_power), price=price, remaining_coins=player.coins
            )

        return await self.txn.with_lock(coins_key(player_id), operation)

    async def merge(
        self, player_id: int, main_id: int, sacrifice_ids: Sequence[int]
    ) -> MergeResult:
        """Fuse owned powers into ``main_id``, consuming the sacrifices and charging coins.

        The merged CP is the sum of every input plus a bonus, and the rank is re-derived
        from it. The equipped power can take part on neither side.
        """
        sacrifice_ids = list(sacrifice_ids)
        if not sacrifice_ids:
            raise GameError("Choose at least one power to merge")
        if len(set(sacrifice_ids)) != len(sacrifice_ids):
            raise GameError("A power can only be sacrificed once per merge")
        if main_id in sacrifice_ids:
            raise GameError("A power cannot be merged into itself")

        async def operation(session: AsyncSession) -> MergeResult:
            player = await fetch_player(session, player_id, for_update=True)
            main = await fetch_owned_power(session, player_id, main_id)
            sacrifices = [
                await fetch_owned_power(session, player_id, user_power_id)
                for user_power_id in sacrifice_ids
            ]
            if player.equipped_power_id in (main_id, *sacrifice_ids):
                raise GameError("The equipped power cannot be merged, unequip it first")

            sacrifice_cps = [sacrifice.combat_power for sacrifice in sacrifices]
            cost = merge_cost(main.combat_power, sacrifice_cps)
            if player.coins < cost:
                raise InsufficientCoinsError(required=cost, available=player.coins)

            previous_cp = main.combat_power
            main.combat_power = merge_cp(previous_cp, sacrifice_cps)
            player.coins -= cost
            session.add(main)
            session.add(player)
            for sacrifice in sacrifices:
                await session.delete(sacrifice)
            await session.flush()

            previous_rank = self.ranks.resolve(previous_cp).name
            merged = self.to_owned(main)
            record_event(
                session,
                player_id,
                EventType.MERGE_POWERS,
                user_power_id=main_id,
                consumed=sacrifice_ids,
                previous_cp=previous_cp,
                combat_power=main.combat_power,
                cost=cost,
            )
            logger.info(
                f"Player {player_id} merged {len(sacrifices)} powers into {main_id}: "
                f"{previous_cp} CP ({previous_rank}) -> {main.combat_power} CP ({merged.rank}), "
                f"cost {cost} coins"
            )
            return MergeResult(
                power=merged,
                previous_cp=previous_cp,
                previous_rank=previous_rank,
                consumed_ids=sacrifice_ids,
                cost=cost,
                remaining_coins=player.coins,
            )

        return await self.txn.with_lock(
            [coins_key(player_id), equip_key(player_id), arena_key(player_id)], operation
        )
