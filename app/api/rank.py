from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_rank_config_service, require_admin
from app.core.ranks import RankConfig
from app.schemas.common import APIResponse
from app.services.rank_config import RankConfigService

router = APIRouter(prefix="/ranks", tags=["ranks"])

Service = Annotated[RankConfigService, Depends(get_rank_config_service)]


@router.get("/")
async def get_ranks(service: Service) -> APIResponse[Sequence[RankConfig]]:
    table = await service.load_table()
    return APIResponse(data=table.ranks)


@router.post("/seed", dependencies=[Depends(require_admin)])
async def seed_ranks(service: Service) -> APIResponse[int]:
    added = await service.seed_defaults()
    return APIResponse(data=added, message=f"Seeded {added} ranks")
