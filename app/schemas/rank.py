from pydantic import BaseModel


class RankRate(BaseModel):
    name: str
    order: int
    min_cp: int
    max_cp: int
    rate: float
    """Draw probability in percent"""
    color: str
    emoji: str
