"""Appointment service: booking lifecycle with policy and conflict checks."""

from collections.abc import Mapping
from datetime import UTC, date, datetime, timedelta
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.models.appointments import appointments
from operabase.schemas.appointments import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    PolicyRule,
    SchedulingErrorKind,
    SchedulingResult,
    can_transition,
)
from operabase.schemas.clinics import ClinicSchedulePolicy
from operabase.services.availability_service import AvailabilityService
from operabase.services.calendar_policy import is_lunch_conflict, is_working_day
from operabase.services.clinic_service import ClinicService
from operabase.services.conflict_detector import ConflictDetector
from operabase.services.directory_service import DirectoryService

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: type[ModelT], payload: ModelT | Mapping[str, Any]) -> ModelT | SchedulingResult:
    """Validate a payload, turning the first error into a failed result."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        return SchedulingResult.fail(SchedulingErrorKind.VALIDATION, error["msg"], field=field)


def _not_found(message: str, field: str) -> SchedulingResult:
    return SchedulingResult.fail(SchedulingErrorKind.NOT_FOUND, message, field=field)


class AppointmentService:
    """Service for managing appointments.

    Every operation is scoped by ``clinic_id``. Business failures come back
    as a failed :class:`SchedulingResult`; database errors propagate.
    """

    def __init__(
        self,
        db: AsyncSession,
        clinic_service: ClinicService | None = None,
        availability_service: AvailabilityService | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.clinic_service = clinic_service or ClinicService()
        self.availability = availability_service or AvailabilityService(
            db, clinic_service=self.clinic_service
        )
        self.directory = DirectoryService(db)
        self.conflicts = ConflictDetector(db)

    async def create_appointment(
        self,
        data: AppointmentCreate | Mapping[str, Any],
    ) -> SchedulingResult:
        """
        Book a new appointment.

        Checks run in order and stop at the first failure: contact, active
        professional, tag, working day, lunch break, overlapping bookings.
        The conflict check and the insert share one transaction holding the
        professional's agenda lock.

        Args:
            data: Appointment creation data

        Returns:
            Result with the created appointment, or the reason it was refused
        """
        parsed = _parse(AppointmentCreate, data)
        if isinstance(parsed, SchedulingResult):
            return parsed
        data = parsed

        log = logger.bind(
            clinic_id=data.clinic_id,
            professional_id=data.professional_id,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
        )

        if not await self.directory.contact_exists(data.contact_id, data.clinic_id):
            return _not_found("Contact not found", "contact_id")

        if not await self.directory.is_active_professional(data.professional_id, data.clinic_id):
            return _not_found("Professional not found", "professional_id")

        if data.tag_id is not None and not await self.directory.tag_exists(
            data.tag_id, data.clinic_id
        ):
            return _not_found("Appointment tag not found", "tag_id")

        start = data.starts_at
        end = start + timedelta(minutes=data.duration_minutes)

        policy = await self.clinic_service.get_schedule_policy(self.db, data.clinic_id)
        violation = self._check_policy(start, policy)
        if violation:
            log.info("appointment_rejected", reason=violation.error.rule.value)
            return violation

        await self.directory.lock_professional_agenda(data.professional_id, data.clinic_id)

        conflicts = await self.conflicts.find_conflicts(
            data.professional_id, data.clinic_id, start, end
        )
        if conflicts:
            await self.db.rollback()
            log.info("appointment_rejected", reason="conflict", conflicts=len(conflicts))
            return await self._conflict_result(
                data.professional_id, data.clinic_id, start, data.duration_minutes, conflicts, policy
            )

        now = datetime.now(UTC)
        values = {
            "clinic_id": data.clinic_id,
            "contact_id": data.contact_id,
            "professional_id": data.professional_id,
            "tag_id": data.tag_id,
            "doctor_name": data.doctor_name,
            "specialty": data.specialty,
            "appointment_type": data.appointment_type,
            "scheduled_at": start,
            "ends_at": end,
            "duration_minutes": data.duration_minutes,
            "status": data.status.value,
            "session_notes": data.session_notes,
            "payment_status": data.payment_status.value,
            "payment_amount": data.payment_amount,
            "created_at": now,
            "updated_at": now,
        }

        try:
            result = await self.db.execute(insert(appointments).values(**values).returning(appointments))
            row = result.mappings().first()
            await self.db.commit()
        except IntegrityError:
            # The exclusion constraint caught a booking committed concurrently
            await self.db.rollback()
            conflicts = await self.conflicts.find_conflicts(
                data.professional_id, data.clinic_id, start, end
            )
            if not conflicts:
                raise
            log.warning("appointment_overlap_constraint", conflicts=len(conflicts))
            return await self._conflict_result(
                data.professional_id, data.clinic_id, start, data.duration_minutes, conflicts, policy
            )

        appointment = AppointmentResponse.model_validate(dict(row))
        log.info("appointment_created", appointment_id=appointment.id)
        return SchedulingResult.ok(appointment)

    async def reschedule_appointment(
        self,
        appointment_id: int,
        clinic_id: int,
        data: AppointmentReschedule | Mapping[str, Any],
    ) -> SchedulingResult:
        """
        Move an appointment to a new date/time, optionally changing its length.

        Args:
            appointment_id: Appointment ID
            clinic_id: Clinic the appointment must belong to
            data: New schedule, optional duration and status

        Returns:
            Result with the updated appointment, or the reason it was refused
        """
        parsed = _parse(AppointmentReschedule, data)
        if isinstance(parsed, SchedulingResult):
            return parsed
        data = parsed

        existing = await self._load(appointment_id, clinic_id, for_update=True)
        if existing is None:
            return _not_found("Appointment not found", "appointment_id")

        current_status = AppointmentStatus(existing["status"])
        if current_status.is_terminal:
            await self.db.rollback()
            return SchedulingResult.fail(
                SchedulingErrorKind.VALIDATION,
                f"Appointment is {current_status.value} and can no longer be rescheduled",
                field="status",
            )

        if data.status is not None and not can_transition(current_status, data.status):
            await self.db.rollback()
            return self._transition_error(current_status, data.status)

        duration = data.duration_minutes or existing["duration_minutes"]
        start = data.starts_at
        end = start + timedelta(minutes=duration)
        professional_id = existing["professional_id"]

        policy = await self.clinic_service.get_schedule_policy(self.db, clinic_id)
        violation = self._check_policy(start, policy)
        if violation:
            await self.db.rollback()
            return violation

        await self.directory.lock_professional_agenda(professional_id, clinic_id)

        conflicts = await self.conflicts.find_conflicts(
            professional_id, clinic_id, start, end, exclude_appointment_id=appointment_id
        )
        if conflicts:
            await self.db.rollback()
            return await self._conflict_result(
                professional_id, clinic_id, start, duration, conflicts, policy
            )

        values: dict[str, Any] = {
            "scheduled_at": start,
            "ends_at": end,
            "duration_minutes": duration,
            "updated_at": datetime.now(UTC),
        }
        if data.status is not None:
            values.update(self._status_values(data.status))

        try:
            row = await self._update(appointment_id, clinic_id, values)
        except IntegrityError:
            await self.db.rollback()
            conflicts = await self.conflicts.find_conflicts(
                professional_id, clinic_id, start, end, exclude_appointment_id=appointment_id
            )
            if not conflicts:
                raise
            return await self._conflict_result(
                professional_id, clinic_id, start, duration, conflicts, policy
            )

        logger.info(
            "appointment_rescheduled",
            appointment_id=appointment_id,
            clinic_id=clinic_id,
            scheduled_at=start.isoformat(),
            duration_minutes=duration,
        )
        return SchedulingResult.ok(AppointmentResponse.model_validate(row))

    async def update_appointment_status(
        self,
        appointment_id: int,
        clinic_id: int,
        data: AppointmentStatusUpdate | Mapping[str, Any],
    ) -> SchedulingResult:
        """
        Update appointment status.

        Args:
            appointment_id: Appointment ID
            clinic_id: Clinic the appointment must belong to
            data: New status and optional session notes

        Returns:
            Result with the updated appointment, or the reason it was refused
        """
        parsed = _parse(AppointmentStatusUpdate, data)
        if isinstance(parsed, SchedulingResult):
            return parsed
        data = parsed

        existing = await self._load(appointment_id, clinic_id, for_update=True)
        if existing is None:
            return _not_found("Appointment not found", "appointment_id")

        current_status = AppointmentStatus(existing["status"])
        if not can_transition(current_status, data.status):
            await self.db.rollback()
            return self._transition_error(current_status, data.status)

        values: dict[str, Any] = {"updated_at": datetime.now(UTC)}
        values.update(self._status_values(data.status))
        if data.session_notes:
            values["session_notes"] = data.session_notes

        row = await self._update(appointment_id, clinic_id, values)

        logger.info(
            "appointment_status_updated",
            appointment_id=appointment_id,
            clinic_id=clinic_id,
            old_status=current_status.value,
            new_status=data.status.value,
        )
        return SchedulingResult.ok(AppointmentResponse.model_validate(row))

    async def cancel_appointment(
        self,
        appointment_id: int,
        clinic_id: int,
        data: AppointmentCancel | Mapping[str, Any],
    ) -> SchedulingResult:
        """
        Cancel an appointment on behalf of the patient or the professional.

        Args:
            appointment_id: Appointment ID
            clinic_id: Clinic the appointment must belong to
            data: Initiator and optional reason

        Returns:
            Result with the cancelled appointment, or the reason it was refused
        """
        parsed = _parse(AppointmentCancel, data)
        if isinstance(parsed, SchedulingResult):
            return parsed
        data = parsed

        existing = await self._load(appointment_id, clinic_id, for_update=True)
        if existing is None:
            return _not_found("Appointment not found", "appointment_id")

        current_status = AppointmentStatus(existing["status"])
        new_status = data.cancelled_by.status
        if not can_transition(current_status, new_status):
            await self.db.rollback()
            return self._transition_error(current_status, new_status)

        values: dict[str, Any] = {
            "cancelled_by": data.cancelled_by.value,
            "cancellation_reason": data.reason,
            "updated_at": datetime.now(UTC),
        }
        values.update(self._status_values(new_status))

        row = await self._update(appointment_id, clinic_id, values)

        logger.info(
            "appointment_cancelled",
            appointment_id=appointment_id,
            clinic_id=clinic_id,
            cancelled_by=data.cancelled_by.value,
        )
        return SchedulingResult.ok(AppointmentResponse.model_validate(row))

    async def get_appointment(self, appointment_id: int, clinic_id: int) -> AppointmentResponse | None:
        """
        Get appointment by ID within a clinic.

        Args:
            appointment_id: Appointment ID
            clinic_id: Clinic ID

        Returns:
            Appointment, or None if absent or owned by another clinic
        """
        row = await self._load(appointment_id, clinic_id)
        return AppointmentResponse.model_validate(row) if row else None

    async def list_appointments(
        self,
        clinic_id: int,
        filters: AppointmentFilters | None = None,
    ) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            clinic_id: Clinic ID
            filters: Filter and pagination parameters

        Returns:
            Page of appointments ordered by start
        """
        filters = filters or AppointmentFilters()

        conditions = [appointments.c.clinic_id == clinic_id]

        if filters.professional_id:
            conditions.append(appointments.c.professional_id == filters.professional_id)

        if filters.contact_id:
            conditions.append(appointments.c.contact_id == filters.contact_id)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.date_from:
            day = date.fromisoformat(filters.date_from)
            conditions.append(appointments.c.scheduled_at >= datetime.combine(day, datetime.min.time()))

        if filters.date_to:
            day = date.fromisoformat(filters.date_to) + timedelta(days=1)
            conditions.append(appointments.c.scheduled_at < datetime.combine(day, datetime.min.time()))

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.scheduled_at.asc(), appointments.c.id.asc())
            .limit(filters.limit)
            .offset(filters.offset)
        )

        result = await self.db.execute(stmt)
        items = [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return AppointmentListResponse(
            total=total,
            limit=filters.limit,
            offset=filters.offset,
            items=items,
        )

    @staticmethod
    def _check_policy(start: datetime, policy: ClinicSchedulePolicy | None) -> SchedulingResult | None:
        """Working day and lunch break checks for a start."""
        if not is_working_day(start.date(), policy):
            return SchedulingResult.fail(
                SchedulingErrorKind.POLICY_VIOLATION,
                f"{start.date().isoformat()} is not a working day for this clinic",
                field="scheduled_date",
                rule=PolicyRule.NON_WORKING_DAY,
            )

        if is_lunch_conflict(start.time(), policy):
            return SchedulingResult.fail(
                SchedulingErrorKind.POLICY_VIOLATION,
                f"{start.strftime('%H:%M')} falls within the clinic's lunch break",
                field="scheduled_time",
                rule=PolicyRule.LUNCH_BREAK,
            )

        return None

    async def _conflict_result(
        self,
        professional_id: int,
        clinic_id: int,
        start: datetime,
        duration_minutes: int,
        conflicts: list[dict],
        policy: ClinicSchedulePolicy | None,
    ) -> SchedulingResult:
        """Conflict failure listing the colliding bookings and free alternatives."""
        slots = await self.availability.get_available_slots(
            professional_id,
            clinic_id,
            start.date(),
            duration_minutes,
            policy=policy,
        )
        return SchedulingResult.fail(
            SchedulingErrorKind.CONFLICT,
            "Time slot conflicts with an existing appointment",
            conflicts=[AppointmentResponse.model_validate(c) for c in conflicts],
            suggested_slots=[slot for slot in slots if slot.available],
        )

    @staticmethod
    def _transition_error(current: AppointmentStatus, new: AppointmentStatus) -> SchedulingResult:
        if current.is_terminal:
            message = f"Appointment is {current.value} and can no longer change"
        else:
            message = f"Cannot change status from {current.value} to {new.value}"
        return SchedulingResult.fail(SchedulingErrorKind.VALIDATION, message, field="status")

    @staticmethod
    def _status_values(status: AppointmentStatus) -> dict[str, Any]:
        values: dict[str, Any] = {"status": status.value}
        if status.is_cancellation:
            values["cancelled_at"] = datetime.now(UTC)
        return values

    async def _load(
        self,
        appointment_id: int,
        clinic_id: int,
        for_update: bool = False,
    ) -> dict | None:
        stmt = select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.clinic_id == clinic_id,
            )
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def _update(self, appointment_id: int, clinic_id: int, values: dict[str, Any]) -> dict:
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.clinic_id == clinic_id,
                )
            )
            .values(**values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        await self.db.commit()
        return dict(row)
