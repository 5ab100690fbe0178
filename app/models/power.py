import sqlmodel

from ._base import BaseModel


class Power(BaseModel, table=True):
    """Catalog entry. Many user powers may reference one definition."""

    __tablename__: str = "powers"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    name: str = sqlmodel.Field(max_length=100, index=True)
    description: str = ""
    rank: str = sqlmodel.Field(max_length=20, index=True)
    base_cp: int = sqlmodel.Field(ge=1, index=True)
    base_price: int = sqlmodel.Field(default=0, ge=0)

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"
