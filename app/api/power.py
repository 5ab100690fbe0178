from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_power_service, require_admin
from app.models.power import Power
from app.schemas.common import APIResponse
from app.schemas.power import (
    EquipRequest,
    MergeRequest,
    MergeResult,
    OwnedPower,
    PowerCreate,
    PowerPurchaseRequest,
    PowerPurchaseResult,
)
from app.services.power import PowerService

router = APIRouter(prefix="/powers", tags=["powers"])

Service = Annotated[PowerService, Depends(get_power_service)]


@router.get("/")
async def list_catalog(
    service: Service, rank: Annotated[str | None, Query(description="Filter by rank")] = None
) -> APIResponse[Sequence[Power]]:
    return APIResponse(data=await service.list_catalog(rank))


@router.post("/", dependencies=[Depends(require_admin)])
async def create_power(body: PowerCreate, service: Service) -> APIResponse[Power]:
    power = await service.create_power(body)
    return APIResponse(data=power, message="Power created successfully")


@router.post("/seed", dependencies=[Depends(require_admin)])
async def seed_catalog(service: Service) -> APIResponse[int]:
    added = await service.seed_default_catalog()
    return APIResponse(data=added, message=f"Seeded {added} powers")


@router.get("/{power_id}")
async def get_power(power_id: int, service: Service) -> APIResponse[Power]:
    power = await service.get_power(power_id)
    if not power:
        raise HTTPException(status_code=404, detail="Power not found")
    return APIResponse(data=power)


@router.get("/player/{player_id}")
async def list_player_powers(player_id: int, service: Service) -> APIResponse[list[OwnedPower]]:
    return APIResponse(data=await service.list_player_powers(player_id))


@router.post("/player/{player_id}/equip")
async def equip(player_id: int, body: EquipRequest, service: Service) -> APIResponse[OwnedPower]:
    power = await service.equip(player_id, body.user_power_id)
    return APIResponse(data=power, message=f"Equipped {power.name}")


@router.post("/player/{player_id}/unequip")
async def unequip(player_id: int, service: Service) -> APIResponse[int]:
    previous = await service.unequip(player_id)
    if previous is None:
        return APIResponse(message="No power equipped")
    return APIResponse(data=previous, message="Power unequipped")


@router.post("/player/{player_id}/merge")
async def merge(player_id: int, body: MergeRequest, service: Service) -> APIResponse[MergeResult]:
    result = await service.merge(player_id, body.main_id, body.sacrifice_ids)
    return APIResponse(
        data=result,
        message=f"Merged {len(result.consumed_ids)} powers into {result.power.name}",
    )


@router.post("/player/{player_id}/purchase")
async def purchase(
    player_id: int, body: PowerPurchaseRequest, service: Service
) -> APIResponse[PowerPurchaseResult]:
    result = await service.purchase_power(player_id, body.power_id)
    return APIResponse(data=result, message=f"Purchased {result.power.name}")


@router.delete("/player/{player_id}/{user_power_id}")
async def remove_power(player_id: int, user_power_id: int, service: Service) -> APIResponse[None]:
    await service.remove_power(player_id, user_power_id)
    return APIResponse(message="Power removed")
