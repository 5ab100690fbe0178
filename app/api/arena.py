from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_arena_service, require_admin
from app.schemas.arena import ArenaSwapResult, LeaderboardEntry, VictoryReport
from app.schemas.common import APIResponse
from app.services.arena import ArenaService

router = APIRouter(prefix="/arena", tags=["arena"])

Service = Annotated[ArenaService, Depends(get_arena_service)]


@router.get("/leaderboard")
async def leaderboard(
    service: Service, limit: Annotated[int, Query(ge=1, le=100)] = 10
) -> APIResponse[Sequence[LeaderboardEntry]]:
    return APIResponse(data=await service.leaderboard(limit))


@router.post("/{player_id}/join")
async def join(player_id: int, service: Service) -> APIResponse[LeaderboardEntry]:
    entry = await service.join(player_id)
    return APIResponse(data=entry, message=f"Joined the arena at #{entry.rank_position}")


@router.post("/victory", dependencies=[Depends(require_admin)])
async def record_victory(body: VictoryReport, service: Service) -> APIResponse[ArenaSwapResult]:
    """Report a PvP result from the battle collaborator (admin only)."""
    result = await service.record_victory(body.winner_id, body.loser_id)
    return APIResponse(data=result)
