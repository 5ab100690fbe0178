from pydantic import BaseModel


class VictoryReport(BaseModel):
    winner_id: int
    loser_id: int


class ArenaSwapResult(BaseModel):
    winner_id: int
    loser_id: int
    winner_position: int
    loser_position: int
    swapped: bool


class LeaderboardEntry(BaseModel):
    """Leaderboard entry with position and player info."""

    rank_position: int
    player_id: int
    name: str | None
    total_cp: int
