"""Tests for clinic working-day and lunch-break rules."""

from datetime import date, time

import pytest
from pydantic import ValidationError

from operabase.schemas.clinics import ClinicSchedulePolicy
from operabase.services.calendar_policy import (
    is_lunch_conflict,
    is_working_day,
    minutes_to_time,
    time_to_minutes,
    weekday_key,
)

MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)
SUNDAY = date(2030, 1, 13)


def test_time_conversions():
    """Test HH:MM conversions."""
    assert time_to_minutes("08:30") == 510
    assert time_to_minutes(time(13, 15)) == 795
    assert minutes_to_time(510) == "08:30"
    assert minutes_to_time(0) == "00:00"


def test_weekday_key():
    """Test weekday names follow date.weekday()."""
    assert weekday_key(MONDAY) == "monday"
    assert weekday_key(SUNDAY) == "sunday"


def test_working_day_follows_clinic_configuration():
    """Test working days come from the policy."""
    policy = ClinicSchedulePolicy(working_days=["Monday", "saturday"])

    assert is_working_day(MONDAY, policy) is True
    assert is_working_day(SATURDAY, policy) is True
    assert is_working_day(date(2030, 1, 8), policy) is False


def test_working_day_without_policy_defaults_to_weekdays():
    """Test the Monday to Friday fallback when the policy is unavailable."""
    assert is_working_day(MONDAY, None) is True
    assert is_working_day(SATURDAY, None) is False
    assert is_working_day(SUNDAY, None) is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("11:59", False),
        ("12:00", True),
        ("12:30", True),
        ("12:59", True),
        ("13:00", False),
        (time(12, 45), True),
    ],
)
def test_lunch_break_is_half_open(value, expected):
    """Test a start exactly at lunch end is allowed."""
    policy = ClinicSchedulePolicy(lunch_start="12:00", lunch_end="13:00")
    assert is_lunch_conflict(value, policy) is expected


def test_lunch_break_disabled():
    """Test clinics without lunch break never conflict."""
    policy = ClinicSchedulePolicy(has_lunch_break=False)
    assert is_lunch_conflict("12:30", policy) is False


def test_lunch_break_without_policy_is_permissive():
    """Test no lunch conflict when the policy is unavailable."""
    assert is_lunch_conflict("12:30", None) is False


def test_policy_rejects_unknown_weekday():
    """Test invalid working day names are refused."""
    with pytest.raises(ValidationError):
        ClinicSchedulePolicy(working_days=["segunda"])


def test_policy_rejects_empty_working_hours():
    """Test work_start must precede work_end."""
    with pytest.raises(ValidationError):
        ClinicSchedulePolicy(work_start="18:00", work_end="08:00")


def test_policy_from_row_ignores_null_columns():
    """Test null clinic columns fall back to defaults."""
    policy = ClinicSchedulePolicy.from_row(
        {"working_days": None, "work_start": "7:00", "lunch_start": None, "has_lunch_break": False}
    )

    assert policy.work_start == "07:00"
    assert policy.work_end == "18:00"
    assert policy.working_days == ["monday", "tuesday", "wednesday", "thursday", "friday"]
    assert policy.has_lunch_break is False
