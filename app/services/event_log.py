from collections.abc import Sequence
from typing import Any

from sqlmodel import col, desc, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.enums import EventType
from app.models.event_log import EventLog
from app.schemas.common import PaginationData


def record_event(
    session: AsyncSession, player_id: int, event_type: EventType, **context: Any
) -> EventLog:
    """Stage an audit entry in the caller's transaction."""
    event_log = EventLog(player_id=player_id, event_type=event_type, context=context)
    session.add(event_log)
    return event_log


class EventLogService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_event_logs(
        self,
        *,
        page: int,
        page_size: int,
        player_id: int | None = None,
        event_type: EventType | None = None,
    ) -> tuple[Sequence[EventLog], PaginationData]:
        offset = (page - 1) * page_size

        filters = []
        if player_id is not None:
            filters.append(col(EventLog.player_id) == player_id)
        if event_type is not None:
            filters.append(col(EventLog.event_type) == event_type)

        total_items_result = await self.db.exec(
            select(func.count()).select_from(EventLog).where(*filters)
        )
        total_items = total_items_result.one()

        result = await self.db.exec(
            select(EventLog)
            .where(*filters)
            .order_by(desc(col(EventLog.id)))
            .offset(offset)
            .limit(page_size)
        )
        event_logs = result.all()

        pagination = PaginationData.build(
            page=page, page_size=page_size, total_items=total_items
        )

        return event_logs, pagination
