"""Medicine reminders

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "medicine_reminders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("dosage", sa.String(length=100), nullable=False),
        sa.Column("frequency", sa.String(length=50), nullable=False),
        sa.Column("time", sa.String(length=5), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_medicine_reminders_id", "medicine_reminders", ["id"], unique=False)
    op.create_index("ix_medicine_reminders_user_id", "medicine_reminders", ["user_id"], unique=False)
    op.create_index("ix_medicine_reminders_is_active", "medicine_reminders", ["is_active"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_medicine_reminders_is_active", table_name="medicine_reminders")
    op.drop_index("ix_medicine_reminders_user_id", table_name="medicine_reminders")
    op.drop_index("ix_medicine_reminders_id", table_name="medicine_reminders")
    op.drop_table("medicine_reminders")
