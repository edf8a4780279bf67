"""Initial triage queue schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


receipt_status_enum = sa.Enum("PENDING", "PROCESSED", "QUEUED", "COMPLETED", name="receiptstatus")
appt_status_enum = sa.Enum("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED", name="appointmentstatus")
alert_status_enum = sa.Enum("PENDING", "ACKNOWLEDGED", "RESPONDED", "CLOSED", name="emergencyalertstatus")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    op.create_index("ix_users_id", "users", ["id"], unique=False)

    op.create_table(
        "hospitals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("queue_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_hospitals_id", "hospitals", ["id"], unique=False)
    op.create_index("ix_hospitals_name", "hospitals", ["name"], unique=False)

    op.create_table(
        "doctors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("specialty", sa.String(length=150), nullable=False),
        sa.Column("hospital_id", sa.Integer(), sa.ForeignKey("hospitals.id"), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_doctors_id", "doctors", ["id"], unique=False)
    op.create_index("ix_doctors_hospital_id", "doctors", ["hospital_id"], unique=False)
    op.create_index("ix_doctors_specialty", "doctors", ["specialty"], unique=False)
    op.create_index("ix_doctors_available", "doctors", ["available"], unique=False)

    op.create_table(
        "receipts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("condition", sa.Text(), nullable=True),
        sa.Column("severity", sa.Integer(), nullable=True),
        sa.Column("hospital_id", sa.Integer(), sa.ForeignKey("hospitals.id"), nullable=True),
        sa.Column("doctor_id", sa.Integer(), sa.ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", receipt_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("queue_position", sa.Integer(), nullable=True),
        sa.Column("ai_analysis", sa.Text(), nullable=True),
    )
    op.create_index("ix_receipts_id", "receipts", ["id"], unique=False)
    op.create_index("ix_receipts_user_id", "receipts", ["user_id"], unique=False)
    op.create_index("ix_receipts_hospital_id", "receipts", ["hospital_id"], unique=False)
    op.create_index("ix_receipts_doctor_id", "receipts", ["doctor_id"], unique=False)
    op.create_index("ix_receipts_status", "receipts", ["status"], unique=False)
    op.create_index("ix_receipts_queue", "receipts", ["hospital_id", "status", "queue_position"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hospital_id", sa.Integer(), sa.ForeignKey("hospitals.id"), nullable=False),
        sa.Column("doctor_id", sa.Integer(), sa.ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True),
        sa.Column("symptoms", sa.Text(), nullable=False),
        sa.Column("ai_analysis", sa.Text(), nullable=True),
        sa.Column("severity", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("status", appt_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("preferred_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_appointments_id", "appointments", ["id"], unique=False)
    op.create_index("ix_appointments_user_id", "appointments", ["user_id"], unique=False)
    op.create_index("ix_appointments_hospital_id", "appointments", ["hospital_id"], unique=False)
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"], unique=False)
    op.create_index("ix_appointments_status", "appointments", ["status"], unique=False)
    op.create_index("ix_appointments_preferred_date", "appointments", ["preferred_date"], unique=False)

    op.create_table(
        "emergency_alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("hospital_id", sa.Integer(), sa.ForeignKey("hospitals.id"), nullable=False),
        sa.Column("status", alert_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("patient_info", sa.JSON(), nullable=False),
        sa.Column("medical_history", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_emergency_alerts_id", "emergency_alerts", ["id"], unique=False)
    op.create_index("ix_emergency_alerts_user_id", "emergency_alerts", ["user_id"], unique=False)
    op.create_index("ix_emergency_alerts_hospital_id", "emergency_alerts", ["hospital_id"], unique=False)
    op.create_index("ix_emergency_alerts_status", "emergency_alerts", ["status"], unique=False)
    op.create_index("ix_emergency_alerts_created_at", "emergency_alerts", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("emergency_alerts")
    op.drop_table("appointments")
    op.drop_table("receipts")
    op.drop_table("doctors")
    op.drop_table("hospitals")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    alert_status_enum.drop(op.get_bind(), checkfirst=True)
    appt_status_enum.drop(op.get_bind(), checkfirst=True)
    receipt_status_enum.drop(op.get_bind(), checkfirst=True)
