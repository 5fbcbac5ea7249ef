"""Clinic schedule policy schemas."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# Indexed like date.weekday(): 0 = Monday
WEEKDAY_KEYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_WORKING_DAYS = list(WEEKDAY_KEYS[:5])

TIME_OF_DAY_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


def normalize_time_of_day(value: str) -> str:
    """Return an ``HH:MM`` string with a zero padded hour."""
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


class ClinicSchedulePolicy(BaseModel):
    """Working days, working hours and lunch break of a clinic."""

    working_days: list[str] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    work_start: str = Field("08:00", pattern=TIME_OF_DAY_PATTERN)
    work_end: str = Field("18:00", pattern=TIME_OF_DAY_PATTERN)
    has_lunch_break: bool = True
    lunch_start: str = Field("12:00", pattern=TIME_OF_DAY_PATTERN)
    lunch_end: str = Field("13:00", pattern=TIME_OF_DAY_PATTERN)
    timezone: str | None = "America/Sao_Paulo"

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: list[str]) -> list[str]:
        """Lower-case weekday names and reject unknown ones."""
        days = [day.strip().lower() for day in v]
        unknown = [day for day in days if day not in WEEKDAY_KEYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        return days

    @field_validator("work_start", "work_end", "lunch_start", "lunch_end")
    @classmethod
    def pad_hour(cls, v: str) -> str:
        """Normalize times to HH:MM."""
        return normalize_time_of_day(v)

    @model_validator(mode="after")
    def validate_windows(self) -> "ClinicSchedulePolicy":
        """Working hours must not be empty."""
        if self.work_start >= self.work_end:
            raise ValueError("work_start must be before work_end")
        return self

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ClinicSchedulePolicy":
        """
        Build a policy from a ``clinics`` row.

        Null columns fall back to the defaults the table declares.

        Args:
            row: Mapping with the clinic's schedule columns

        Returns:
            Schedule policy
        """
        values = {
            key: row.get(key)
            for key in (
                "working_days",
                "work_start",
                "work_end",
                "has_lunch_break",
                "lunch_start",
                "lunch_end",
                "timezone",
            )
            if row.get(key) is not None
        }
        return cls.model_validate(values)
