import datetime
from typing import Literal, Self

from pydantic import BaseModel, Field


def _iso_now() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat()


class PaginationData(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @classmethod
    def build(cls, *, page: int, page_size: int, total_items: int) -> Self:
        return cls(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=(total_items + page_size - 1) // page_size,
        )


class APIResponse[T](BaseModel):
    """Envelope shared by every endpoint, errors included."""

    status: Literal["success", "error"] = "success"
    data: T | None = None
    message: str | None = None
    timestamp: str = Field(default_factory=_iso_now)

    pagination: PaginationData | None = None


class PaginatedResponse[T](APIResponse[T]):
    pagination: PaginationData  # pyright: ignore[reportGeneralTypeIssues]
