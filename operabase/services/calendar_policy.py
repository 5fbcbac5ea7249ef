"""Clinic calendar policy: working days and lunch breaks."""

from datetime import date, time

import structlog

from operabase.schemas.clinics import DEFAULT_WORKING_DAYS, WEEKDAY_KEYS, ClinicSchedulePolicy

logger = structlog.get_logger()


def time_to_minutes(value: str | time) -> int:
    """Minutes since midnight of an ``HH:MM`` string or ``time``."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_key(day: date) -> str:
    """Lower-case English weekday name of a date."""
    return WEEKDAY_KEYS[day.weekday()]


def is_working_day(day: date, policy: ClinicSchedulePolicy | None) -> bool:
    """
    Check whether the clinic opens on the given date.

    Args:
        day: Candidate date
        policy: Clinic schedule policy, None when it could not be loaded

    Returns:
        True if the weekday is one of the clinic's working days. Without a
        policy Monday to Friday are working days.
    """
    key = weekday_key(day)

    if policy is None:
        logger.warning(
            "clinic_policy_unavailable",
            check="working_day",
            fallback="monday_to_friday",
            date=day.isoformat(),
        )
        return key in DEFAULT_WORKING_DAYS

    is_working = key in policy.working_days
    logger.debug(
        "working_day_checked",
        date=day.isoformat(),
        weekday=key,
        working_days=policy.working_days,
        is_working=is_working,
    )
    return is_working


def is_lunch_conflict(value: str | time, policy: ClinicSchedulePolicy | None) -> bool:
    """
    Check whether a start time falls inside the clinic's lunch break.

    The break is half-open: a booking may start exactly when it ends.

    Args:
        value: Candidate start time
        policy: Clinic schedule policy, None when it could not be loaded

    Returns:
        True if ``lunch_start <= value < lunch_end``. Always False when the
        clinic has no lunch break or the policy is unavailable.
    """
    if policy is None:
        logger.warning("clinic_policy_unavailable", check="lunch_break", fallback="no_lunch_break")
        return False

    if not policy.has_lunch_break:
        return False

    candidate = time_to_minutes(value)
    in_lunch = time_to_minutes(policy.lunch_start) <= candidate < time_to_minutes(policy.lunch_end)
    logger.debug(
        "lunch_break_checked",
        time=minutes_to_time(candidate),
        lunch_start=policy.lunch_start,
        lunch_end=policy.lunch_end,
        in_lunch=in_lunch,
    )
    return in_lunch
