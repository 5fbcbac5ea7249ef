"""Tests for overlap detection."""

from datetime import date, datetime

import pytest
from sqlalchemy import insert

from operabase.models.appointments import appointments
from operabase.services.conflict_detector import (
    ConflictDetector,
    day_bounds,
    filter_conflicts,
    intervals_overlap,
)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute)


def _booking(appointment_id: int, start: datetime, minutes: int, status: str = "scheduled") -> dict:
    return {
        "id": appointment_id,
        "scheduled_at": start,
        "ends_at": None,
        "duration_minutes": minutes,
        "status": status,
    }


def test_intervals_overlap_half_open():
    """Test back-to-back intervals do not overlap."""
    assert intervals_overlap(_at(9), _at(10), _at(9, 30), _at(10, 30)) is True
    assert intervals_overlap(_at(9), _at(10), _at(10), _at(11)) is False
    assert intervals_overlap(_at(10), _at(11), _at(9), _at(10)) is False
    assert intervals_overlap(_at(9), _at(12), _at(10), _at(11)) is True


def test_filter_conflicts_skips_non_blocking_statuses():
    """Test cancelled and no-show bookings free their slot."""
    existing = [
        _booking(1, _at(9), 60, "cancelled_by_patient"),
        _booking(2, _at(9), 60, "no_show"),
        _booking(3, _at(9), 60, "confirmed"),
    ]

    conflicts = filter_conflicts(existing, _at(9, 30), _at(10, 30))

    assert [c["id"] for c in conflicts] == [3]


def test_filter_conflicts_excludes_rescheduled_appointment():
    """Test an appointment never conflicts with itself."""
    existing = [_booking(1, _at(9), 60)]

    assert filter_conflicts(existing, _at(9, 30), _at(10, 30), exclude_appointment_id=1) == []
    assert len(filter_conflicts(existing, _at(9, 30), _at(10, 30))) == 1


def test_day_bounds():
    """Test a day maps to midnight-to-midnight."""
    start, end = day_bounds(date(2030, 1, 7))
    assert start == datetime(2030, 1, 7)
    assert end == datetime(2030, 1, 8)


@pytest.mark.asyncio
async def test_find_conflicts_reads_professional_day(
    db_session,
    test_clinic: dict,
    professional_id: int,
    contact_id: int,
):
    """Test stored bookings are scoped to clinic, professional and day."""
    base = {
        "clinic_id": test_clinic["id"],
        "contact_id": contact_id,
        "professional_id": professional_id,
        "duration_minutes": 60,
    }
    await db_session.execute(
        insert(appointments),
        [
            {**base, "scheduled_at": _at(9), "ends_at": _at(10), "status": "scheduled"},
            {**base, "scheduled_at": _at(14), "ends_at": _at(15), "status": "cancelled"},
            {
                **base,
                "scheduled_at": datetime(2030, 1, 8, 9),
                "ends_at": datetime(2030, 1, 8, 10),
                "status": "scheduled",
            },
        ],
    )
    await db_session.commit()

    detector = ConflictDetector(db_session)

    day = await detector.get_day_bookings(professional_id, test_clinic["id"], date(2030, 1, 7))
    assert len(day) == 1

    assert len(await detector.find_conflicts(professional_id, test_clinic["id"], _at(9, 30), _at(10))) == 1
    assert await detector.find_conflicts(professional_id, test_clinic["id"], _at(10), _at(11)) == []
    assert await detector.find_conflicts(professional_id, test_clinic["id"], _at(14), _at(15)) == []
    assert await detector.find_conflicts(professional_id + 100, test_clinic["id"], _at(9), _at(10)) == []


@pytest.mark.asyncio
async def test_booking_past_midnight_blocks_next_day(
    db_session,
    test_clinic: dict,
    professional_id: int,
    contact_id: int,
):
    """Test a booking started the evening before is seen on the next day."""
    await db_session.execute(
        insert(appointments).values(
            clinic_id=test_clinic["id"],
            contact_id=contact_id,
            professional_id=professional_id,
            scheduled_at=_at(23),
            ends_at=datetime(2030, 1, 8, 1),
            duration_minutes=120,
            status="scheduled",
        )
    )
    await db_session.commit()

    detector = ConflictDetector(db_session)
    tuesday = await detector.get_day_bookings(professional_id, test_clinic["id"], date(2030, 1, 8))
    assert [b["scheduled_at"] for b in tuesday] == [_at(23)]

    conflicts = await detector.find_conflicts(
        professional_id, test_clinic["id"], datetime(2030, 1, 8, 0), datetime(2030, 1, 8, 1)
    )
    assert len(conflicts) == 1
    assert (
        await detector.find_conflicts(
            professional_id, test_clinic["id"], datetime(2030, 1, 8, 1), datetime(2030, 1, 8, 2)
        )
        == []
    )
