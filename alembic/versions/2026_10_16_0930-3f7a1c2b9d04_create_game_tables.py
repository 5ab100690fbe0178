# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""create_game_tables

Revision ID: 3f7a1c2b9d04
Revises:
Create Date: 2026-10-16 09:30:12.418305

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel.sql.sqltypes

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f7a1c2b9d04"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

EVENT_TYPES = (
    "REGISTER",
    "GACHA_DRAW",
    "PURCHASE_DRAWS",
    "GRANT_DRAWS",
    "ADJUST_COINS",
    "ADJUST_BANK",
    "DEPOSIT",
    "WITHDRAW",
    "TRANSFER_COINS",
    "PURCHASE_POWER",
    "REMOVE_POWER",
    "EQUIP_POWER",
    "UNEQUIP_POWER",
    "ARENA_SWAP",
)


def timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "players",
        *timestamps(),
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("coins", sa.BigInteger(), nullable=False),
        sa.Column("bank_balance", sa.BigInteger(), nullable=False),
        sa.Column("gacha_draws", sa.Integer(), nullable=False),
        sa.Column("pity_counter", sa.Integer(), nullable=False),
        sa.Column("equipped_power_id", sa.Integer(), nullable=True),
        sa.Column("battles_won", sa.Integer(), nullable=False),
        sa.Column("battles_lost", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_players_id"), "players", ["id"], unique=False)
    op.create_index(
        op.f("ix_players_equipped_power_id"), "players", ["equipped_power_id"], unique=False
    )

    op.create_table(
        "powers",
        *timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("rank", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("base_cp", sa.Integer(), nullable=False),
        sa.Column("base_price", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_powers_id"), "powers", ["id"], unique=False)
    op.create_index(op.f("ix_powers_name"), "powers", ["name"], unique=False)
    op.create_index(op.f("ix_powers_rank"), "powers", ["rank"], unique=False)
    op.create_index(op.f("ix_powers_base_cp"), "powers", ["base_cp"], unique=False)

    op.create_table(
        "rank_configs",
        *timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("min_cp", sa.Integer(), nullable=False),
        sa.Column("max_cp", sa.Integer(), nullable=False),
        sa.Column("gacha_weight", sa.Float(), nullable=False),
        sa.Column("color", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("emoji", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("price_multiplier", sa.Float(), nullable=False),
        sa.Column("base_price", sa.Integer(), nullable=False),
        sa.Column("cp_variance", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("order"),
    )
    op.create_index(op.f("ix_rank_configs_id"), "rank_configs", ["id"], unique=False)
    op.create_index(op.f("ix_rank_configs_min_cp"), "rank_configs", ["min_cp"], unique=False)

    op.create_table(
        "user_powers",
        *timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("power_id", sa.Integer(), nullable=False),
        sa.Column("combat_power", sa.Integer(), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["power_id"], ["powers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_powers_id"), "user_powers", ["id"], unique=False)
    op.create_index(op.f("ix_user_powers_player_id"), "user_powers", ["player_id"], unique=False)
    op.create_index(op.f("ix_user_powers_power_id"), "user_powers", ["power_id"], unique=False)
    op.create_index(
        op.f("ix_user_powers_combat_power"), "user_powers", ["combat_power"], unique=False
    )

    op.create_table(
        "gacha_history",
        *timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("power_id", sa.Integer(), nullable=False),
        sa.Column("power_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("power_rank", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("combat_power", sa.Integer(), nullable=False),
        sa.Column("draw_type", sa.Enum("FREE", "PAID", "BONUS", name="drawtype"), nullable=False),
        sa.Column("was_pity", sa.Boolean(), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["power_id"], ["powers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_gacha_history_id"), "gacha_history", ["id"], unique=False)
    op.create_index(
        op.f("ix_gacha_history_player_id"), "gacha_history", ["player_id"], unique=False
    )
    op.create_index(op.f("ix_gacha_history_drawn_at"), "gacha_history", ["drawn_at"], unique=False)

    op.create_table(
        "arena_rankings",
        *timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("rank_position", sa.Integer(), nullable=False),
        sa.Column("total_cp", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_arena_rankings_id"), "arena_rankings", ["id"], unique=False)
    op.create_index(
        op.f("ix_arena_rankings_player_id"), "arena_rankings", ["player_id"], unique=True
    )
    op.create_index(
        op.f("ix_arena_rankings_rank_position"), "arena_rankings", ["rank_position"], unique=True
    )

    op.create_table(
        "event_logs",
        *timestamps(),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("event_type", sa.Enum(*EVENT_TYPES, name="eventtype"), nullable=False),
        sa.Column("context", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_event_logs_id"), "event_logs", ["id"], unique=False)
    op.create_index(op.f("ix_event_logs_player_id"), "event_logs", ["player_id"], unique=False)
    op.create_index(op.f("ix_event_logs_event_type"), "event_logs", ["event_type"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "event_logs",
        "arena_rankings",
        "gacha_history",
        "user_powers",
        "rank_configs",
        "powers",
        "players",
    ):
        op.drop_table(table)

    sa.Enum(name="eventtype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="drawtype").drop(op.get_bind(), checkfirst=True)
