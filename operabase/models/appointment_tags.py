"""Appointment tag table using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
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

appointment_tags = Table(
    "appointment_tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("clinic_id", Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
    Column("name", Text, nullable=False),
    Column("color", String(7), nullable=False, server_default=text("'#3B82F6'")),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

Index("idx_appointment_tags_clinic", appointment_tags.c.clinic_id)
