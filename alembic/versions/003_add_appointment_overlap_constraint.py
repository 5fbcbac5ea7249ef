"""Add appointment overlap exclusion constraint

Revision ID: 003_add_appointment_overlap_constraint
Revises: 002_create_conversation_ai_tables
Create Date: 2026-10-19

"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Reject overlapping time-blocking bookings of a professional."""
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.execute(
        """
        ALTER TABLE appointments
        ADD CONSTRAINT appointments_no_overlap
        EXCLUDE USING gist (
            clinic_id WITH =,
            professional_id WITH =,
            tsrange(scheduled_at, ends_at, '[)') WITH &&
        )
        WHERE (
            status NOT IN (
                'cancelled',
                'cancelled_by_patient',
                'cancelled_by_professional',
                'no_show'
            )
        )
        """
    )


def downgrade() -> None:
    """Drop the overlap constraint."""
    op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_no_overlap")
