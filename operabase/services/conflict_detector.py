"""Overlap detection between bookings of the same professional."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.models.appointments import NON_BLOCKING_STATUSES, appointments


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open overlap test: back-to-back intervals do not overlap."""
    return start_a < end_b and start_b < end_a


def appointment_end(appointment: Mapping[str, Any]) -> datetime:
    """End of a stored appointment."""
    if appointment.get("ends_at") is not None:
        return appointment["ends_at"]
    return appointment["scheduled_at"] + timedelta(minutes=appointment["duration_minutes"])


def filter_conflicts(
    existing: Iterable[Mapping[str, Any]],
    start: datetime,
    end: datetime,
    exclude_appointment_id: int | None = None,
) -> list[dict]:
    """
    Keep the appointments whose interval overlaps ``[start, end)``.

    Args:
        existing: Stored appointments of the professional
        start: Candidate start
        end: Candidate end
        exclude_appointment_id: Appointment being moved, never its own conflict

    Returns:
        Overlapping appointments in input order
    """
    conflicts = []
    for appointment in existing:
        if exclude_appointment_id is not None and appointment["id"] == exclude_appointment_id:
            continue
        if appointment.get("status") in NON_BLOCKING_STATUSES:
            continue
        if intervals_overlap(start, end, appointment["scheduled_at"], appointment_end(appointment)):
            conflicts.append(dict(appointment))
    return conflicts


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open window covering a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class ConflictDetector:
    """Finds bookings that collide with a candidate interval."""

    def __init__(self, db: AsyncSession):
        """Initialize detector with database session."""
        self.db = db

    async def _get_overlapping(
        self,
        professional_id: int,
        clinic_id: int,
        start: datetime,
        end: datetime,
    ) -> list[dict]:
        # Filtering on the stored end keeps bookings that started before the window
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.clinic_id == clinic_id,
                    appointments.c.professional_id == professional_id,
                    appointments.c.scheduled_at < end,
                    appointments.c.ends_at > start,
                    appointments.c.status.notin_(NON_BLOCKING_STATUSES),
                )
            )
            .order_by(appointments.c.scheduled_at)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def get_day_bookings(
        self,
        professional_id: int,
        clinic_id: int,
        day: date,
    ) -> list[dict]:
        """
        Load the professional's time-blocking appointments touching one day.

        A booking that starts the evening before and runs past midnight is
        included.

        Args:
            professional_id: Professional (user) ID
            clinic_id: Clinic ID
            day: Calendar day, clinic-local

        Returns:
            Appointments ordered by start
        """
        day_start, day_end = day_bounds(day)
        return await self._get_overlapping(professional_id, clinic_id, day_start, day_end)

    async def find_conflicts(
        self,
        professional_id: int,
        clinic_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: int | None = None,
    ) -> list[dict]:
        """
        Return the professional's appointments overlapping ``[start, end)``.

        Cancelled and no-show appointments never conflict.

        Args:
            professional_id: Professional (user) ID
            clinic_id: Clinic ID
            start: Candidate start
            end: Candidate end
            exclude_appointment_id: Appointment being rescheduled

        Returns:
            Conflicting appointments ordered by start
        """
        bookings = await self._get_overlapping(professional_id, clinic_id, start, end)
        return filter_conflicts(bookings, start, end, exclude_appointment_id)
