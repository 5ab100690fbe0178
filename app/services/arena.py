from collections.abc import Sequence

from loguru import logger
from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.enums import EventType
from app.core.exceptions import ArenaEntryNotFoundError, GameError
from app.core.locks import arena_key
from app.core.transaction import TransactionManager
from app.models.arena_ranking import ArenaRanking
from app.models.player import Player
from app.models.user_power import UserPower
from app.schemas.arena import ArenaSwapResult, LeaderboardEntry
from app.services.event_log import record_event
from app.services.player import fetch_player, fetch_players

LADDER_KEY = "arena_ladder"
"""Serializes joins so two new players never claim the same bottom position"""


async def fetch_entry(
    session: AsyncSession, player_id: int, *, for_update: bool = False
) -> ArenaRanking | None:
    stmt = select(ArenaRanking).where(ArenaRanking.player_id == player_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.exec(stmt)
    return result.first()


async def equipped_cp(session: AsyncSession, player: Player) -> int:
    if player.equipped_power_id is None:
        return 0
    user_power = await session.get(UserPower, player.equipped_power_id)
    if user_power is None or user_power.player_id != player.id:
        return 0
    return user_power.combat_power


async def refresh_total_cp(session: AsyncSession, player_id: int) -> int | None:
    """Sync the arena entry with the currently equipped power.

    Must run inside a section holding the player's arena key. Returns the new total, or
    None when the player has not joined the arena.
    """
    entry = await fetch_entry(session, player_id, for_update=True)
    if entry is None:
        return None

    player = await fetch_player(session, player_id)
    entry.total_cp = await equipped_cp(session, player)
    session.add(entry)
    return entry.total_cp


class ArenaService:
    def __init__(self, db: AsyncSession, txn: TransactionManager) -> None:
        self.db = db
        self.txn = txn

    async def join(self, player_id: int) -> LeaderboardEntry:
        """Enter the ladder at the bottom. Joining twice returns the existing entry."""

        async def operation(session: AsyncSession) -> LeaderboardEntry:
            player = await fetch_player(session, player_id)
            entry = await fetch_entry(session, player_id)
            if entry is None:
                bottom = await session.exec(select(func.max(ArenaRanking.rank_position)))
                entry = ArenaRanking(
                    player_id=player_id,
                    rank_position=(bottom.one() or 0) + 1,
                    total_cp=await equipped_cp(session, player),
                )
                session.add(entry)
                await session.flush()
                logger.info(f"Player {player_id} joined the arena at #{entry.rank_position}")

            return LeaderboardEntry(
                rank_position=entry.rank_position,
                player_id=player_id,
                name=player.name,
                total_cp=entry.total_cp,
            )

        return await self.txn.with_lock([LADDER_KEY, arena_key(player_id)], operation)

    async def refresh_total_cp(self, player_id: int) -> int | None:
        async def operation(session: AsyncSession) -> int | None:
            return await refresh_total_cp(session, player_id)

        return await self.txn.with_lock(arena_key(player_id), operation)

    async def record_victory(self, winner_id: int, loser_id: int) -> ArenaSwapResult:
        """Record a PvP result, taking the loser's position if the winner was ranked below."""
        if winner_id == loser_id:
            raise GameError("A player cannot defeat themselves")

        async def operation(session: AsyncSession) -> ArenaSwapResult:
            entries: dict[int, ArenaRanking] = {}
            for player_id in sorted((winner_id, loser_id)):
                entry = await fetch_entry(session, player_id, for_update=True)
                if entry is None:
                    raise ArenaEntryNotFoundError(player_id)
                entries[player_id] = entry
            winner, loser = entries[winner_id], entries[loser_id]

            players = await fetch_players(session, winner_id, loser_id)
            winner_player, loser_player = players[winner_id], players[loser_id]
            winner_player.battles_won += 1
            loser_player.battles_lost += 1
            session.add(winner_player)
            session.add(loser_player)

            # Position 1 is the top, so a larger number means ranked below
            swapped = winner.rank_position > loser.rank_position
            if swapped:
                winner_pos, loser_pos = winner.rank_position, loser.rank_position
                # Park the winner outside the ladder so the unique constraint holds mid-swap
                winner.rank_position = 0
                session.add(winner)
                await session.flush()
                loser.rank_position = winner_pos
                session.add(loser)
                await session.flush()
                winner.rank_position = loser_pos
                session.add(winner)
                await session.flush()

                record_event(
                    session, winner_id, EventType.ARENA_SWAP, opponent=loser_id, position=loser_pos
                )
                record_event(
                    session, loser_id, EventType.ARENA_SWAP, opponent=winner_id, position=winner_pos
                )
                logger.info(
                    f"Arena swap: player {winner_id} #{winner_pos} -> #{loser_pos}, "
                    f"player {loser_id} #{loser_pos} -> #{winner_pos}"
                )

            return ArenaSwapResult(
                winner_id=winner_id,
                loser_id=loser_id,
                winner_position=winner.rank_position,
                loser_position=loser.rank_position,
                swapped=swapped,
            )

        return await self.txn.with_lock([arena_key(winner_id), arena_key(loser_id)], operation)

    async def leaderboard(self, limit: int = 10) -> Sequence[LeaderboardEntry]:
        result = await self.db.exec(
            select(ArenaRanking, Player)
            .join(Player, col(Player.id) == col(ArenaRanking.player_id))
            .order_by(col(ArenaRanking.rank_position))
            .limit(limit)
        )
        return [
            LeaderboardEntry(
                rank_position=entry.rank_position,
                player_id=player.id,
                name=player.name,
                total_cp=entry.total_cp,
            )
            for entry, player in result.all()
        ]
