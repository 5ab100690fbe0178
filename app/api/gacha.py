from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_gacha_service
from app.schemas.common import APIResponse
from app.schemas.gacha import (
    BatchDrawResult,
    GachaDrawRequest,
    GachaHistoryEntry,
    GachaHistoryStats,
    GachaPityResponse,
    GachaPurchaseRequest,
    PurchaseResult,
)
from app.schemas.rank import RankRate
from app.services.gacha import GachaService

router = APIRouter(prefix="/gacha", tags=["gacha"])

Service = Annotated[GachaService, Depends(get_gacha_service)]


@router.get("/rates")
async def get_rates(service: Service) -> APIResponse[list[RankRate]]:
    return APIResponse(data=service.get_rates())


@router.get("/{player_id}/pity")
async def get_pity(player_id: int, service: Service) -> APIResponse[GachaPityResponse]:
    return APIResponse(data=await service.get_pity(player_id))


@router.get("/{player_id}/history")
async def get_history(
    player_id: int, service: Service, limit: Annotated[int, Query(ge=1, le=100)] = 10
) -> APIResponse[list[GachaHistoryEntry]]:
    return APIResponse(data=await service.get_history(player_id, limit))


@router.get("/{player_id}/stats")
async def get_stats(player_id: int, service: Service) -> APIResponse[GachaHistoryStats]:
    return APIResponse(data=await service.get_history_stats(player_id))


@router.post("/{player_id}/draw")
async def draw(
    player_id: int, body: GachaDrawRequest, service: Service
) -> APIResponse[BatchDrawResult]:
    result = await service.perform_batch_draw(player_id, body.count, body.draw_type)
    return APIResponse(data=result, message=f"Performed {body.count} draws")


@router.post("/{player_id}/purchase")
async def purchase(
    player_id: int, body: GachaPurchaseRequest, service: Service
) -> APIResponse[PurchaseResult]:
    result = await service.purchase_draws(player_id, body.amount)
    return APIResponse(data=result, message=f"Purchased {body.amount} draws")
