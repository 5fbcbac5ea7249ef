"""Clinic model definition using SQLAlchemy Core."""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
    text,
)

from operabase.models.base import metadata

clinics = Table(
    "clinics",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Basic Information
    Column("name", Text, nullable=False),
    Column("responsible", Text),
    Column("email", Text),
    Column("phone", String(30)),
    # Schedule policy
    Column("working_days", JSON),
    # Example: ["monday", "tuesday", "wednesday", "thursday", "friday"]
    Column("work_start", String(5), server_default=text("'08:00'")),
    Column("work_end", String(5), server_default=text("'18:00'")),
    Column("has_lunch_break", Boolean, server_default=text("true")),
    Column("lunch_start", String(5), server_default=text("'12:00'")),
    Column("lunch_end", String(5), server_default=text("'13:00'")),
    Column("timezone", Text, server_default=text("'America/Sao_Paulo'")),
    # Status
    Column("status", String(50), nullable=False, server_default=text("'active'")),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "status IN ('active', 'inactive', 'suspended')",
        name="clinics_status_check",
    ),
)

Index("idx_clinics_status", clinics.c.status)
