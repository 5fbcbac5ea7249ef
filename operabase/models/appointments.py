"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
    text,
)

from operabase.models.base import metadata

# Statuses that no longer hold a slot in the professional's agenda
NON_BLOCKING_STATUSES = (
    "cancelled",
    "cancelled_by_patient",
    "cancelled_by_professional",
    "no_show",
)

appointments = Table(
    "appointments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Ownership / references
    Column("clinic_id", Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
    Column("contact_id", Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
    Column("professional_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("tag_id", Integer, ForeignKey("appointment_tags.id", ondelete="SET NULL")),
    # Snapshot fields
    Column("doctor_name", Text),
    Column("specialty", Text),
    Column("appointment_type", Text),
    # Schedule (clinic-local wall clock, end stored for range queries)
    Column("scheduled_at", DateTime, nullable=False),
    Column("ends_at", DateTime, nullable=False),
    Column("duration_minutes", Integer, nullable=False, server_default=text("60")),
    # Status management
    Column("status", String(30), nullable=False, server_default=text("'scheduled'")),
    Column("cancelled_by", String(20)),
    Column("cancellation_reason", Text),
    Column("session_notes", Text),
    # Payment
    Column("payment_status", String(20), nullable=False, server_default=text("'pending'")),
    Column("payment_amount", Integer),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True)),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'completed', 'no_show', 'cancelled', "
        "'cancelled_by_patient', 'cancelled_by_professional')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "duration_minutes BETWEEN 15 AND 480",
        name="appointments_duration_check",
    ),
    CheckConstraint(
        "payment_status IN ('pending', 'paid', 'cancelled')",
        name="appointments_payment_status_check",
    ),
)

# Agenda lookups per professional and per contact
Index(
    "idx_appointments_clinic_professional_start",
    appointments.c.clinic_id,
    appointments.c.professional_id,
    appointments.c.scheduled_at,
)
Index("idx_appointments_clinic_contact", appointments.c.clinic_id, appointments.c.contact_id)
Index("idx_appointments_clinic_status", appointments.c.clinic_id, appointments.c.status)
