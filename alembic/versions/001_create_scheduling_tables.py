"""Create scheduling tables

Revision ID: 001_create_scheduling_tables
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create clinics, users, contacts, tags and appointments."""
    op.create_table(
        "clinics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("responsible", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("working_days", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("work_start", sa.String(length=5), server_default=sa.text("'08:00'"), nullable=True),
        sa.Column("work_end", sa.String(length=5), server_default=sa.text("'18:00'"), nullable=True),
        sa.Column("has_lunch_break", sa.Boolean(), server_default=sa.text("true"), nullable=True),
        sa.Column("lunch_start", sa.String(length=5), server_default=sa.text("'12:00'"), nullable=True),
        sa.Column("lunch_end", sa.String(length=5), server_default=sa.text("'13:00'"), nullable=True),
        sa.Column("timezone", sa.Text(), server_default=sa.text("'America/Sao_Paulo'"), nullable=True),
        sa.Column("status", sa.String(length=50), server_default=sa.text("'active'"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')",
            name="clinics_status_check",
        ),
    )
    op.create_index("idx_clinics_status", "clinics", ["status"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "clinic_users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("clinic_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=50), server_default=sa.text("'professional'"), nullable=False),
        sa.Column("is_professional", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("clinic_id", "user_id", name="uq_clinic_users_clinic_user"),
    )
    op.create_index("idx_clinic_users_clinic", "clinic_users", ["clinic_id"])
    op.create_index("idx_clinic_users_user", "clinic_users", ["user_id"])

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("clinic_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=50), server_default=sa.text("'lead'"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_contacts_clinic", "contacts", ["clinic_id"])

    op.create_table(
        "appointment_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("clinic_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("color", sa.String(length=7), server_default=sa.text("'#3B82F6'"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_appointment_tags_clinic", "appointment_tags", ["clinic_id"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("clinic_id", sa.Integer(), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=True),
        sa.Column("doctor_name", sa.Text(), nullable=True),
        sa.Column("specialty", sa.Text(), nullable=True),
        sa.Column("appointment_type", sa.Text(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("ends_at", sa.DateTime(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), server_default=sa.text("60"), nullable=False),
        sa.Column("status", sa.String(length=30), server_default=sa.text("'scheduled'"), nullable=False),
        sa.Column("cancelled_by", sa.String(length=20), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("session_notes", sa.Text(), nullable=True),
        sa.Column("payment_status", sa.String(length=20), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("payment_amount", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["professional_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["tag_id"], ["appointment_tags.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'no_show', 'cancelled', "
            "'cancelled_by_patient', 'cancelled_by_professional')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "duration_minutes BETWEEN 15 AND 480",
            name="appointments_duration_check",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'cancelled')",
            name="appointments_payment_status_check",
        ),
    )

    # Create indexes
    op.create_index(
        "idx_appointments_clinic_professional_start",
        "appointments",
        ["clinic_id", "professional_id", "scheduled_at"],
    )
    op.create_index("idx_appointments_clinic_contact", "appointments", ["clinic_id", "contact_id"])
    op.create_index("idx_appointments_clinic_status", "appointments", ["clinic_id", "status"])


def downgrade() -> None:
    """Drop scheduling tables."""
    op.drop_table("appointments")
    op.drop_table("appointment_tags")
    op.drop_table("contacts")
    op.drop_table("clinic_users")
    op.drop_table("users")
    op.drop_table("clinics")
