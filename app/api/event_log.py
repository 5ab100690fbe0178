from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_event_log_service, require_admin
from app.core.enums import EventType
from app.models.event_log import EventLog
from app.schemas.common import PaginatedResponse
from app.services.event_log import EventLogService

router = APIRouter(prefix="/event-logs", tags=["event-logs"])


@router.get("/", dependencies=[Depends(require_admin)])
async def get_event_logs(
    service: Annotated[EventLogService, Depends(get_event_log_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    player_id: Annotated[int | None, Query(description="Filter by player ID")] = None,
    event_type: Annotated[EventType | None, Query(description="Filter by event type")] = None,
) -> PaginatedResponse[Sequence[EventLog]]:
    event_logs, pagination = await service.get_event_logs(
        page=page, page_size=page_size, player_id=player_id, event_type=event_type
    )
    return PaginatedResponse(data=event_logs, pagination=pagination)
