"""Create conversations and assistant configuration tables

Revision ID: 002_create_conversation_ai_tables
Revises: 001_create_scheduling_tables
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create conversations with pause columns and livia_configurations."""
    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("clinic_id", sa.Integer(), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'active'"), nullable=False),
        sa.Column("ai_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("ai_paused_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ai_paused_by_user_id", sa.Integer(), nullable=True),
        sa.Column("ai_pause_reason", sa.String(length=100), nullable=True),
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
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "idx_conversations_clinic_contact",
        "conversations",
        ["clinic_id", "contact_id"],
    )

    op.create_table(
        "livia_configurations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("clinic_id", sa.Integer(), nullable=False),
        sa.Column("general_prompt", sa.Text(), nullable=True),
        sa.Column("off_duration", sa.Integer(), server_default=sa.text("30"), nullable=False),
        sa.Column("off_unit", sa.String(length=10), server_default=sa.text("'minutes'"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
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
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="CASCADE"),
        sa.CheckConstraint("off_duration > 0", name="livia_configurations_off_duration_check"),
    )
    op.create_index("idx_livia_configurations_clinic", "livia_configurations", ["clinic_id"])


def downgrade() -> None:
    """Drop conversation assistant tables."""
    op.drop_table("livia_configurations")
    op.drop_table("conversations")
