import datetime

import sqlmodel


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class BaseModel(sqlmodel.SQLModel):
    created_at: datetime.datetime = sqlmodel.Field(
        default_factory=utc_now, sa_type=sqlmodel.DateTime(timezone=True)
    )
    updated_at: datetime.datetime = sqlmodel.Field(
        default_factory=utc_now,
        sa_type=sqlmodel.DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utc_now},
    )
