# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""Add daily reward, merge and coin flip

Revision ID: 8c2e5d71a6f3
Revises: 3f7a1c2b9d04
Create Date: 2026-10-17 14:15:41.902117

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8c2e5d71a6f3"
down_revision: str | None = "3f7a1c2b9d04"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

NEW_EVENT_TYPES = ("MERGE_POWERS", "DAILY_REWARD", "COIN_FLIP")


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column(
        "players", sa.Column("last_daily_at", sa.DateTime(timezone=True), nullable=True)
    )

    # ALTER TYPE ... ADD VALUE cannot run inside a transaction block
    with op.get_context().autocommit_block():
        for value in NEW_EVENT_TYPES:
            op.execute(f"ALTER TYPE eventtype ADD VALUE IF NOT EXISTS '{value}'")


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(
        "DELETE FROM event_logs WHERE event_type IN ("
        + ", ".join(f"'{value}'" for value in NEW_EVENT_TYPES)
        + ")"
    )
    # Postgres cannot drop enum values, so the type is rebuilt without them
    op.execute("ALTER TABLE event_logs ALTER COLUMN event_type TYPE TEXT")
    sa.Enum(name="eventtype").drop(op.get_bind())
    op.execute(
        "CREATE TYPE eventtype AS ENUM ("
        "'REGISTER', 'GACHA_DRAW', 'PURCHASE_DRAWS', 'GRANT_DRAWS', 'ADJUST_COINS', "
        "'ADJUST_BANK', 'DEPOSIT', 'WITHDRAW', 'TRANSFER_COINS', 'PURCHASE_POWER', "
        "'REMOVE_POWER', 'EQUIP_POWER', 'UNEQUIP_POWER', 'ARENA_SWAP')"
    )
    op.execute(
        "ALTER TABLE event_logs ALTER COLUMN event_type TYPE eventtype "
        "USING event_type::eventtype"
    )

    op.drop_column("players", "last_daily_at")
