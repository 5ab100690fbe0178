from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_player_service, require_admin
from app.models.player import Player
from app.schemas.common import APIResponse
from app.schemas.player import (
    AmountRequest,
    BalanceResult,
    CoinFlipRequest,
    CoinFlipResult,
    CurrencyAdjustment,
    DailyRewardResult,
    DrawGrant,
    PlayerCreate,
    TransferRequest,
    TransferResult,
)
from app.services.player import PlayerService

router = APIRouter(prefix="/players", tags=["players"])

Service = Annotated[PlayerService, Depends(get_player_service)]


@router.post("/")
async def register_player(body: PlayerCreate, service: Service) -> APIResponse[Player]:
    player = await service.register(body.id, body.name)
    return APIResponse(data=player, message="Player registered successfully")


@router.get("/{player_id}")
async def get_player(player_id: int, service: Service) -> APIResponse[Player]:
    player = await service.get_player(player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return APIResponse(data=player)


@router.post("/{player_id}/deposit")
async def deposit(
    player_id: int, body: AmountRequest, service: Service
) -> APIResponse[BalanceResult]:
    result = await service.deposit(player_id, body.amount)
    return APIResponse(data=result, message=f"Deposited {body.amount} coins")


@router.post("/{player_id}/withdraw")
async def withdraw(
    player_id: int, body: AmountRequest, service: Service
) -> APIResponse[BalanceResult]:
    result = await service.withdraw(player_id, body.amount)
    return APIResponse(data=result, message=f"Withdrew {body.amount} coins")


@router.post("/{player_id}/transfer")
async def transfer(
    player_id: int, body: TransferRequest, service: Service
) -> APIResponse[TransferResult]:
    result = await service.transfer_coins(player_id, body.to_player_id, body.amount)
    return APIResponse(data=result, message=f"Transferred {body.amount} coins")


@router.post("/{player_id}/daily")
async def claim_daily(player_id: int, service: Service) -> APIResponse[DailyRewardResult]:
    result = await service.claim_daily(player_id)
    return APIResponse(data=result, message=f"Claimed {result.reward} coins")


@router.post("/{player_id}/coinflip")
async def coin_flip(
    player_id: int, body: CoinFlipRequest, service: Service
) -> APIResponse[CoinFlipResult]:
    result = await service.coin_flip(player_id, body.amount, body.choice)
    return APIResponse(data=result, message="You won!" if result.won else "You lost")


@router.post("/{player_id}/coins", dependencies=[Depends(require_admin)])
async def adjust_coins(
    player_id: int, adjustment: CurrencyAdjustment, service: Service
) -> APIResponse[BalanceResult]:
    """Adjust a player's wallet (admin only)."""
    result = await service.adjust_coins(player_id, adjustment.amount, adjustment.reason)
    return APIResponse(data=result, message=f"Adjusted coins by {adjustment.amount}")


@router.post("/{player_id}/bank", dependencies=[Depends(require_admin)])
async def adjust_bank(
    player_id: int, adjustment: CurrencyAdjustment, service: Service
) -> APIResponse[BalanceResult]:
    """Adjust a player's bank balance (admin only)."""
    result = await service.adjust_bank(player_id, adjustment.amount, adjustment.reason)
    return APIResponse(data=result, message=f"Adjusted bank by {adjustment.amount}")


@router.post("/{player_id}/draws", dependencies=[Depends(require_admin)])
async def grant_draws(player_id: int, grant: DrawGrant, service: Service) -> APIResponse[int]:
    """Grant gacha draws (admin only)."""
    remaining = await service.grant_draws(player_id, grant.amount, grant.reason)
    return APIResponse(data=remaining, message=f"Granted {grant.amount} draws")
