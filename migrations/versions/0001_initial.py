"""initial schema: habits, progress and occurrence exceptions

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

HABIT_ICONS = (
    "droplet",
    "walk",
    "book_open",
    "dumbbell",
    "sun",
    "moon",
    "zap",
    "flame",
    "leaf",
    "coffee",
    "heart",
    "feather",
    "briefcase",
    "dollar_sign",
    "bed",
    "utensils",
    "meditation",
    "cloud",
    "sparkles",
    "music",
)
REPEAT_FREQUENCIES = ("day", "week", "month", "year")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Время создания записи",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Время последнего обновления записи",
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "habits",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "icon",
            sa.Enum(*HABIT_ICONS, name="habit_icon_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.Column("goal_amount", sa.Float(), nullable=False),
        sa.Column("goal_unit", sa.String(length=64), nullable=False),
        sa.Column("is_all_day", sa.Boolean(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column(
            "repeat_frequency",
            sa.Enum(*REPEAT_FREQUENCIES, name="repeat_frequency_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("repeat_every", sa.Integer(), nullable=False),
        sa.Column("repeat_days", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_habits")),
    )
    op.create_index(op.f("ix_habits_start_date"), "habits", ["start_date"], unique=False)

    op.create_table(
        "progress_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("habit_id", sa.String(length=64), nullable=False),
        sa.Column("progress_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["habit_id"],
            ["habits.id"],
            name=op.f("fk_progress_records_habit_id_habits"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_progress_records")),
        sa.UniqueConstraint("habit_id", "progress_date", name="uq_progress_per_day"),
    )
    op.create_index(op.f("ix_progress_records_habit_id"), "progress_records", ["habit_id"], unique=False)
    op.create_index(op.f("ix_progress_records_progress_date"), "progress_records", ["progress_date"], unique=False)

    op.create_table(
        "deletion_exceptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("habit_id", sa.String(length=64), nullable=False),
        sa.Column("exception_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["habit_id"],
            ["habits.id"],
            name=op.f("fk_deletion_exceptions_habit_id_habits"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_deletion_exceptions")),
        sa.UniqueConstraint("habit_id", "exception_date", name="uq_deletion_exception_per_day"),
    )
    op.create_index(op.f("ix_deletion_exceptions_habit_id"), "deletion_exceptions", ["habit_id"], unique=False)

    op.create_table(
        "field_override_exceptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("habit_id", sa.String(length=64), nullable=False),
        sa.Column("exception_date", sa.Date(), nullable=False),
        sa.Column("modified_fields", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["habit_id"],
            ["habits.id"],
            name=op.f("fk_field_override_exceptions_habit_id_habits"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_field_override_exceptions")),
        sa.UniqueConstraint("habit_id", "exception_date", name="uq_field_override_per_day"),
    )
    op.create_index(
        op.f("ix_field_override_exceptions_habit_id"),
        "field_override_exceptions",
        ["habit_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_field_override_exceptions_habit_id"), table_name="field_override_exceptions")
    op.drop_table("field_override_exceptions")
    op.drop_index(op.f("ix_deletion_exceptions_habit_id"), table_name="deletion_exceptions")
    op.drop_table("deletion_exceptions")
    op.drop_index(op.f("ix_progress_records_progress_date"), table_name="progress_records")
    op.drop_index(op.f("ix_progress_records_habit_id"), table_name="progress_records")
    op.drop_table("progress_records")
    op.drop_index(op.f("ix_habits_start_date"), table_name="habits")
    op.drop_table("habits")
