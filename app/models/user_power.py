from datetime import datetime
from typing import TYPE_CHECKING

import sqlmodel
from sqlalchemy.orm import Mapped

from ._base import BaseModel, utc_now

if TYPE_CHECKING:
    from .power import Power


class UserPower(BaseModel, table=True):
    """A power owned by one player.

    Only CP is stored, the rank is always derived from it through the rank table.
    """

    __tablename__: str = "user_powers"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(
        foreign_key="players.id", index=True, sa_type=sqlmodel.BigInteger
    )
    power_id: int = sqlmodel.Field(foreign_key="powers.id", index=True)
    combat_power: int = sqlmodel.Field(ge=1, index=True)
    acquired_at: datetime = sqlmodel.Field(
        default_factory=utc_now, sa_type=sqlmodel.DateTime(timezone=True)
    )

    power: Mapped["Power"] = sqlmodel.Relationship(sa_relationship_kwargs={"lazy": "joined"})
