"""Lookups into the contact, professional and tag directories."""

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.models.appointment_tags import appointment_tags
from operabase.models.contacts import contacts
from operabase.models.users import clinic_users, users


class DirectoryService:
    """Tenant-scoped existence checks for entities an appointment references."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def contact_exists(self, contact_id: int, clinic_id: int) -> bool:
        """Check the contact exists and belongs to the clinic."""
        stmt = select(contacts.c.id).where(
            and_(
                contacts.c.id == contact_id,
                contacts.c.clinic_id == clinic_id,
            )
        )
        result = await self.db.execute(stmt.limit(1))
        return result.first() is not None

    async def is_active_professional(self, user_id: int, clinic_id: int) -> bool:
        """Check the user is active and an active member of the clinic."""
        stmt = (
            select(clinic_users.c.id)
            .join(users, users.c.id == clinic_users.c.user_id)
            .where(
                and_(
                    clinic_users.c.user_id == user_id,
                    clinic_users.c.clinic_id == clinic_id,
                    clinic_users.c.is_active.is_(True),
                    users.c.is_active.is_(True),
                )
            )
        )
        result = await self.db.execute(stmt.limit(1))
        return result.first() is not None

    async def tag_exists(self, tag_id: int, clinic_id: int) -> bool:
        """Check the appointment tag belongs to the clinic."""
        stmt = select(appointment_tags.c.id).where(
            and_(
                appointment_tags.c.id == tag_id,
                appointment_tags.c.clinic_id == clinic_id,
            )
        )
        result = await self.db.execute(stmt.limit(1))
        return result.first() is not None

    async def lock_professional_agenda(self, user_id: int, clinic_id: int) -> None:
        """
        Lock the professional's membership row until the transaction ends.

        Bookings for the same professional serialize on this row lock, so a
        conflict check and the write that follows it cannot interleave with
        another booking. Backends without row locks ignore ``FOR UPDATE``.
        """
        stmt = (
            select(clinic_users.c.id)
            .where(
                and_(
                    clinic_users.c.user_id == user_id,
                    clinic_users.c.clinic_id == clinic_id,
                )
            )
            .with_for_update()
        )
        await self.db.execute(stmt)
