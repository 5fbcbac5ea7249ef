"""Conversation AI state and assistant configuration tables."""

from sqlalchemy import (
    Boolean,
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

conversations = Table(
    "conversations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("clinic_id", Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
    Column("contact_id", Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False),
    Column("status", String(20), nullable=False, server_default=text("'active'")),
    # AI pause state, expiry is evaluated at read time
    Column("ai_active", Boolean, nullable=False, server_default=text("true")),
    Column("ai_paused_until", DateTime(timezone=True)),
    Column("ai_paused_by_user_id", Integer),
    Column("ai_pause_reason", String(100)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

Index("idx_conversations_clinic_contact", conversations.c.clinic_id, conversations.c.contact_id)

livia_configurations = Table(
    "livia_configurations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("clinic_id", Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
    Column("general_prompt", Text),
    # How long the assistant stays quiet after a professional's message
    Column("off_duration", Integer, nullable=False, server_default=text("30")),
    Column("off_unit", String(10), nullable=False, server_default=text("'minutes'")),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("off_duration > 0", name="livia_configurations_off_duration_check"),
)

Index("idx_livia_configurations_clinic", livia_configurations.c.clinic_id)
