"""Contact (patient/lead) table using SQLAlchemy Core."""

from sqlalchemy import (
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

contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("clinic_id", Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
    Column("name", Text, nullable=False),
    Column("phone", String(30)),
    Column("email", Text),
    Column("status", String(50), nullable=False, server_default=text("'lead'")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

Index("idx_contacts_clinic", contacts.c.clinic_id)
