"""Availability slot schemas."""

from datetime import date as calendar_date
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from operabase.schemas.clinics import TIME_OF_DAY_PATTERN, normalize_time_of_day

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class SlotUnavailableReason(str, Enum):
    """Why a generated slot cannot be booked."""

    CONFLICT = "conflict"
    LUNCH_BREAK = "lunch_break"


class AvailabilitySlot(BaseModel):
    """A candidate start time for a booking of a given duration."""

    time: str
    duration_minutes: int
    available: bool
    unavailable_reason: SlotUnavailableReason | None = None


class AvailabilityQuery(BaseModel):
    """Parameters of an availability lookup."""

    professional_id: int = Field(..., gt=0)
    clinic_id: int = Field(..., gt=0)
    date: str = Field(..., pattern=DATE_PATTERN)
    duration_minutes: int = Field(..., ge=15, le=480)
    work_start: str | None = Field(None, pattern=TIME_OF_DAY_PATTERN)
    work_end: str | None = Field(None, pattern=TIME_OF_DAY_PATTERN)

    @field_validator("date")
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        """Reject dates that match the pattern but do not exist."""
        calendar_date.fromisoformat(v)
        return v

    @field_validator("work_start", "work_end")
    @classmethod
    def pad_hour(cls, v: str | None) -> str | None:
        """Normalize times to HH:MM."""
        return normalize_time_of_day(v) if v else v

    @model_validator(mode="after")
    def validate_window(self) -> "AvailabilityQuery":
        """Working window must not be empty when both ends are given."""
        if self.work_start and self.work_end and self.work_start >= self.work_end:
            raise ValueError("work_start must be before work_end")
        return self


class AvailabilityResponse(BaseModel):
    """Slots generated for one professional and day."""

    professional_id: int
    date: str
    duration_minutes: int
    slots: list[AvailabilitySlot]

    @property
    def available_slots(self) -> list[AvailabilitySlot]:
        """Only the bookable slots."""
        return [slot for slot in self.slots if slot.available]
