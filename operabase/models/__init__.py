"""Database models."""

from operabase.models.appointment_tags import appointment_tags
from operabase.models.appointments import NON_BLOCKING_STATUSES, appointments
from operabase.models.base import metadata
from operabase.models.clinics import clinics
from operabase.models.contacts import contacts
from operabase.models.conversations import conversations, livia_configurations
from operabase.models.users import clinic_users, users

__all__ = [
    "NON_BLOCKING_STATUSES",
    "appointment_tags",
    "appointments",
    "clinic_users",
    "clinics",
    "contacts",
    "conversations",
    "livia_configurations",
    "metadata",
    "users",
]
