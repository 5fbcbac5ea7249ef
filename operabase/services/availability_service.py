"""Availability slot generation."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.config import settings
from operabase.schemas.availability import AvailabilitySlot, SlotUnavailableReason
from operabase.schemas.clinics import ClinicSchedulePolicy
from operabase.services.calendar_policy import (
    is_lunch_conflict,
    is_working_day,
    minutes_to_time,
    time_to_minutes,
)
from operabase.services.clinic_service import ClinicService
from operabase.services.conflict_detector import ConflictDetector, filter_conflicts

logger = structlog.get_logger()


def generate_slots(
    day: date,
    duration_minutes: int,
    work_start: str,
    work_end: str,
    bookings: Iterable[Mapping[str, Any]],
    policy: ClinicSchedulePolicy | None,
    step_minutes: int = 15,
) -> list[AvailabilitySlot]:
    """
    Enumerate candidate start times of a day and flag the bookable ones.

    Starts step from ``work_start`` while the whole booking still ends at or
    before ``work_end``. A slot is unavailable when it overlaps one of the
    bookings or starts inside the lunch break.

    Args:
        day: Calendar day, clinic-local
        duration_minutes: Length of the booking to place
        work_start: First possible start, ``HH:MM``
        work_end: Latest possible end, ``HH:MM``
        bookings: Time-blocking appointments of the professional on that day
        policy: Clinic schedule policy, None when unavailable
        step_minutes: Increment between candidate starts

    Returns:
        Slots in chronological order; empty on non-working days
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    if not is_working_day(day, policy):
        return []

    booked = list(bookings)
    day_start = datetime.combine(day, datetime.min.time())
    end_minutes = time_to_minutes(work_end)
    current = time_to_minutes(work_start)
    slots = []

    while current + duration_minutes <= end_minutes:
        slot_time = minutes_to_time(current)
        slot_start = day_start + timedelta(minutes=current)
        slot_end = slot_start + timedelta(minutes=duration_minutes)

        reason = None
        if filter_conflicts(booked, slot_start, slot_end):
            reason = SlotUnavailableReason.CONFLICT
        elif is_lunch_conflict(slot_time, policy):
            reason = SlotUnavailableReason.LUNCH_BREAK

        slots.append(
            AvailabilitySlot(
                time=slot_time,
                duration_minutes=duration_minutes,
                available=reason is None,
                unavailable_reason=reason,
            )
        )
        current += step_minutes

    return slots


class AvailabilityService:
    """Service computing a professional's free slots."""

    def __init__(
        self,
        db: AsyncSession,
        clinic_service: ClinicService | None = None,
        step_minutes: int | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.clinic_service = clinic_service or ClinicService()
        self.step_minutes = step_minutes or settings.slot_step_minutes
        self.conflicts = ConflictDetector(db)

    async def get_available_slots(
        self,
        professional_id: int,
        clinic_id: int,
        day: date,
        duration_minutes: int,
        work_start: str | None = None,
        work_end: str | None = None,
        policy: ClinicSchedulePolicy | None = None,
    ) -> list[AvailabilitySlot]:
        """
        Generate the slots of a professional's day.

        Args:
            professional_id: Professional (user) ID
            clinic_id: Clinic ID
            day: Calendar day, clinic-local
            duration_minutes: Length of the booking to place
            work_start: Window start, defaults to the clinic's working hours
            work_end: Window end, defaults to the clinic's working hours
            policy: Already loaded clinic policy, fetched when omitted

        Returns:
            All slots with their availability flag
        """
        if policy is None:
            policy = await self.clinic_service.get_schedule_policy(self.db, clinic_id)

        if work_start is None:
            work_start = policy.work_start if policy else settings.default_work_start
        if work_end is None:
            work_end = policy.work_end if policy else settings.default_work_end

        bookings = []
        if is_working_day(day, policy):
            bookings = await self.conflicts.get_day_bookings(professional_id, clinic_id, day)

        slots = generate_slots(
            day,
            duration_minutes,
            work_start,
            work_end,
            bookings,
            policy,
            step_minutes=self.step_minutes,
        )

        logger.info(
            "availability_generated",
            clinic_id=clinic_id,
            professional_id=professional_id,
            date=day.isoformat(),
            duration_minutes=duration_minutes,
            total_slots=len(slots),
            available_slots=sum(1 for slot in slots if slot.available),
        )
        return slots
