"""create recurring_tasks table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_recurring_tasks"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "recurring_tasks",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("frequency", sa.String(length=40), nullable=False),
        sa.Column("recurrence_params", sa.JSON(), nullable=False),
        sa.Column("next_due_date", sa.Date(), nullable=False),
        sa.Column("last_completed_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("completion_history", sa.JSON(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("associated_airdrop_id", sa.String(length=64), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_recurring_tasks_next_due_date", "recurring_tasks", ["next_due_date"], unique=False)
    op.create_index("ix_recurring_tasks_is_active", "recurring_tasks", ["is_active"], unique=False)
    op.create_index(
        "ix_recurring_tasks_associated_airdrop_id",
        "recurring_tasks",
        ["associated_airdrop_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_recurring_tasks_associated_airdrop_id", table_name="recurring_tasks")
    op.drop_index("ix_recurring_tasks_is_active", table_name="recurring_tasks")
    op.drop_index("ix_recurring_tasks_next_due_date", table_name="recurring_tasks")
    op.drop_table("recurring_tasks")
