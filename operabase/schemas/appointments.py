"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from operabase.schemas.availability import DATE_PATTERN, AvailabilitySlot
from operabase.schemas.clinics import TIME_OF_DAY_PATTERN, normalize_time_of_day


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    CANCELLED_BY_PATIENT = "cancelled_by_patient"
    CANCELLED_BY_PROFESSIONAL = "cancelled_by_professional"

    @property
    def is_cancellation(self) -> bool:
        """Whether this is one of the cancellation variants."""
        return self in CANCELLATION_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition or reschedule is allowed."""
        return self in TERMINAL_STATUSES

    @property
    def blocks_agenda(self) -> bool:
        """Whether an appointment in this status occupies its time slot."""
        return not (self.is_cancellation or self is AppointmentStatus.NO_SHOW)


CANCELLATION_STATUSES = frozenset(
    {
        AppointmentStatus.CANCELLED,
        AppointmentStatus.CANCELLED_BY_PATIENT,
        AppointmentStatus.CANCELLED_BY_PROFESSIONAL,
    }
)

TERMINAL_STATUSES = CANCELLATION_STATUSES | {
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
}

_CLOSING_STATUSES = CANCELLATION_STATUSES | {AppointmentStatus.NO_SHOW}

# Allowed moves out of each non-terminal status
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({AppointmentStatus.CONFIRMED}) | _CLOSING_STATUSES,
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED}) | _CLOSING_STATUSES,
}

INITIAL_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """
    Check a status change against the appointment state machine.

    Rewriting the current status of a live appointment is allowed so notes
    can be attached without moving it.

    Args:
        current: Status the appointment is in
        new: Requested status

    Returns:
        True if the change is permitted
    """
    if current.is_terminal:
        return False
    if new == current:
        return True
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


class CancelledBy(str, Enum):
    """Who cancelled an appointment."""

    PATIENT = "patient"
    PROFESSIONAL = "professional"

    @property
    def status(self) -> AppointmentStatus:
        """Cancellation status encoding the initiator."""
        if self is CancelledBy.PATIENT:
            return AppointmentStatus.CANCELLED_BY_PATIENT
        return AppointmentStatus.CANCELLED_BY_PROFESSIONAL


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class ScheduleFields(BaseModel):
    """Date and time of a booking, clinic-local."""

    scheduled_date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")
    scheduled_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="HH:MM, 24h")

    @field_validator("scheduled_date")
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        """Reject dates that match the pattern but do not exist."""
        date.fromisoformat(v)
        return v

    @field_validator("scheduled_time")
    @classmethod
    def pad_hour(cls, v: str) -> str:
        """Normalize 9:00 to 09:00."""
        return normalize_time_of_day(v)

    @property
    def starts_at(self) -> datetime:
        """Combined clinic-local start."""
        return datetime.combine(
            date.fromisoformat(self.scheduled_date),
            time.fromisoformat(self.scheduled_time),
        )


class AppointmentCreateBody(ScheduleFields):
    """Booking request as received on a clinic-scoped route."""

    contact_id: int = Field(..., gt=0)
    professional_id: int = Field(..., gt=0)
    duration_minutes: int = Field(..., ge=15, le=480)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    tag_id: int | None = Field(None, gt=0)
    doctor_name: str | None = Field(None, max_length=200)
    specialty: str | None = Field(None, max_length=200)
    appointment_type: str | None = Field(None, max_length=200)
    session_notes: str | None = Field(None, max_length=2000)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_amount: int | None = Field(None, ge=0, description="Amount in cents")

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v: AppointmentStatus) -> AppointmentStatus:
        """New appointments start scheduled or confirmed."""
        if v not in INITIAL_STATUSES:
            raise ValueError("New appointments must be 'scheduled' or 'confirmed'")
        return v


class AppointmentCreate(AppointmentCreateBody):
    """Schema for creating a new appointment."""

    clinic_id: int = Field(..., gt=0)


class AppointmentReschedule(ScheduleFields):
    """Schema for moving an appointment to a new date/time."""

    duration_minutes: int | None = Field(None, ge=15, le=480)
    status: AppointmentStatus | None = None

    @field_validator("status")
    @classmethod
    def reject_cancellation(cls, v: AppointmentStatus | None) -> AppointmentStatus | None:
        """Cancellations go through the cancel operation."""
        if v is not None and v.is_cancellation:
            raise ValueError("Use the cancel operation to cancel an appointment")
        return v


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    session_notes: str | None = Field(None, max_length=2000)


class AppointmentCancel(BaseModel):
    """Schema for cancelling an appointment."""

    cancelled_by: CancelledBy
    reason: str | None = Field(None, max_length=1000)


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    professional_id: int | None = None
    contact_id: int | None = None
    status: AppointmentStatus | None = None
    date_from: str | None = Field(None, pattern=DATE_PATTERN)
    date_to: str | None = Field(None, pattern=DATE_PATTERN)
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: int
    clinic_id: int
    contact_id: int
    professional_id: int
    tag_id: int | None = None
    doctor_name: str | None = None
    specialty: str | None = None
    appointment_type: str | None = None
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    cancelled_by: CancelledBy | None = None
    cancellation_reason: str | None = None
    session_notes: str | None = None
    payment_status: PaymentStatus
    payment_amount: int | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    limit: int
    offset: int
    items: list[AppointmentResponse]


class SchedulingErrorKind(str, Enum):
    """Business failure categories of scheduling operations."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    POLICY_VIOLATION = "policy_violation"
    CONFLICT = "conflict"


class PolicyRule(str, Enum):
    """Clinic calendar rule that rejected a booking."""

    NON_WORKING_DAY = "non_working_day"
    LUNCH_BREAK = "lunch_break"


class SchedulingError(BaseModel):
    """Structured description of a rejected operation."""

    kind: SchedulingErrorKind
    message: str
    field: str | None = None
    rule: PolicyRule | None = None
    conflicts: list[AppointmentResponse] | None = None
    suggested_slots: list[AvailabilitySlot] | None = None


class SchedulingResult(BaseModel):
    """Outcome of a scheduling operation: an appointment or an error."""

    success: bool
    appointment: AppointmentResponse | None = None
    error: SchedulingError | None = None

    @classmethod
    def ok(cls, appointment: AppointmentResponse) -> "SchedulingResult":
        """Successful result."""
        return cls(success=True, appointment=appointment)

    @classmethod
    def fail(cls, kind: SchedulingErrorKind, message: str, **extra: Any) -> "SchedulingResult":
        """Failed result of the given kind."""
        return cls(success=False, error=SchedulingError(kind=kind, message=message, **extra))
