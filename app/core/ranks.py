from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from app.core.exceptions import RankTableError


class RankConfig(BaseModel, frozen=True):
    name: str
    order: int
    """Position in the rank ladder, higher is rarer"""
    min_cp: int = Field(ge=0)
    max_cp: int = Field(ge=0)
    gacha_weight: float = Field(default=0.0, ge=0)
    """Probability mass in the draw roll, zero means the rank cannot be drawn"""
    color: str = "#999999"
    emoji: str = "⚪"
    price_multiplier: float = Field(default=1.0, gt=0)
    base_price: int = Field(default=0, ge=0)
    cp_variance: float = Field(default=0.1, ge=0, lt=1)
    """Relative CP spread applied to drawn powers of this rank"""

    @property
    def drawable(self) -> bool:
        return self.gacha_weight > 0

    def clamp(self, cp: int) -> int:
        """Pull a CP value into this rank's [min_cp, max_cp] band."""
        return min(max(cp, self.min_cp), self.max_cp)


class RankTable:
    """Ordered, validated set of ranks shared by every rank/CP computation."""

    def __init__(self, ranks: Iterable[RankConfig]) -> None:
        by_order = sorted(ranks, key=lambda rank: rank.order)
        if not by_order:
            raise RankTableError("Rank table must contain at least one rank")

        names = [rank.name for rank in by_order]
        if len(set(names)) != len(names):
            raise RankTableError(f"Duplicate rank names in rank table: {names}")

        orders = [rank.order for rank in by_order]
        if len(set(orders)) != len(orders):
            raise RankTableError(f"Duplicate rank orders in rank table: {orders}")

        for rank in by_order:
            if rank.min_cp > rank.max_cp:
                raise RankTableError(
                    f"Rank {rank.name} has min_cp {rank.min_cp} above max_cp {rank.max_cp}"
                )

        self._ranks: tuple[RankConfig, ...] = tuple(by_order)
        self._by_name = {rank.name: rank for rank in by_order}
        # Stable sort keeps the higher order last among equal min_cp values
        self._by_min_cp = tuple(sorted(by_order, key=lambda rank: rank.min_cp))

    def __iter__(self):
        return iter(self._ranks)

    def __len__(self) -> int:
        return len(self._ranks)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def ranks(self) -> Sequence[RankConfig]:
        return self._ranks

    @property
    def lowest(self) -> RankConfig:
        return self._ranks[0]

    @property
    def drawable(self) -> list[RankConfig]:
        return [rank for rank in self._ranks if rank.drawable]

    @property
    def top_tier(self) -> RankConfig:
        """The highest-order drawable rank, the one pity guarantees."""
        drawable = self.drawable
        if not drawable:
            raise RankTableError("Rank table has no drawable ranks")
        return drawable[-1]

    @property
    def total_weight(self) -> float:
        return sum(rank.gacha_weight for rank in self._ranks if rank.drawable)

    def get(self, name: str) -> RankConfig:
        try:
            return self._by_name[name]
        except KeyError:
            raise RankTableError(f"Unknown rank: {name}") from None

    def order_of(self, name: str) -> int:
        return self.get(name).order

    def is_top_tier(self, name: str) -> bool:
        return name == self.top_tier.name

    def resolve(self, cp: float) -> RankConfig:
        """Map a CP value to the highest-order rank whose min_cp it reaches.

        CP below every rank floors to the lowest rank. Never raises.
        """
        best = self.lowest
        for rank in self._by_min_cp:
            if cp >= rank.min_cp and rank.order >= best.order:
                best = rank
        return best

    def rates(self) -> dict[str, float]:
        """Draw probability per drawable rank, in percent."""
        total = self.total_weight
        if total <= 0:
            return {}
        return {rank.name: rank.gacha_weight / total * 100 for rank in self.drawable}

    def validate_no_overlap(self) -> None:
        """Strict check that CP ranges never overlap when walked in rank order."""
        for lower, upper in zip(self._ranks, self._ranks[1:], strict=False):
            if upper.min_cp <= lower.max_cp:
                raise RankTableError(
                    f"CP range of {upper.name} ({upper.min_cp}-{upper.max_cp}) overlaps "
                    f"{lower.name} ({lower.min_cp}-{lower.max_cp})"
                )


DEFAULT_RANKS: tuple[RankConfig, ...] = (
    RankConfig(name="Normal", order=1, min_cp=45, max_cp=150, gacha_weight=70.0, color="#999999", emoji="⚪", price_multiplier=1.0, base_price=500),  # noqa: E501
    RankConfig(name="Rare", order=2, min_cp=200, max_cp=400, gacha_weight=20.0, color="#0099ff", emoji="🔵", price_multiplier=2.5, base_price=2000),  # noqa: E501
    RankConfig(name="Epic", order=3, min_cp=800, max_cp=1200, gacha_weight=7.0, color="#9932cc", emoji="🟣", price_multiplier=4.0, base_price=8000),  # noqa: E501
    RankConfig(name="Legendary", order=4, min_cp=2000, max_cp=3000, gacha_weight=2.5, color="#ffaa00", emoji="🟡", price_multiplier=6.5, base_price=25000),  # noqa: E501
    RankConfig(name="Mythic", order=5, min_cp=5000, max_cp=6000, gacha_weight=0.5, color="#ff0000", emoji="🔴", price_multiplier=10.0, base_price=100000),  # noqa: E501
    RankConfig(name="Divine", order=6, min_cp=9000, max_cp=12000, color="#00ff00", emoji="🟢", price_multiplier=15.0, base_price=200000),  # noqa: E501
    RankConfig(name="Cosmic", order=7, min_cp=18000, max_cp=25000, color="#ff6600", emoji="🟠", price_multiplier=25.0, base_price=400000),  # noqa: E501
    RankConfig(name="Transcendent", order=8, min_cp=35000, max_cp=50000, color="#000000", emoji="⚫", price_multiplier=40.0, base_price=800000),  # noqa: E501
    RankConfig(name="Omnipotent", order=9, min_cp=75000, max_cp=100000, color="#ffffff", emoji="✨", price_multiplier=60.0, base_price=1500000),  # noqa: E501
    RankConfig(name="Absolute", order=10, min_cp=500000, max_cp=1000000, color="#ff69b4", emoji="💎", price_multiplier=100.0, base_price=5000000),  # noqa: E501
)

DEFAULT_RANK_TABLE = RankTable(DEFAULT_RANKS)


def resolve_rank(cp: float, table: RankTable = DEFAULT_RANK_TABLE) -> str:
    """Name of the rank a CP value belongs to."""
    return table.resolve(cp).name
