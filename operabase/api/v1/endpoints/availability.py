"""Availability endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status
from pydantic import ValidationError

from operabase.core.exceptions import ValidationException
from operabase.dependencies import Availability
from operabase.schemas.availability import AvailabilityQuery, AvailabilityResponse

router = APIRouter()


@router.get(
    "/clinics/{clinic_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="Available slots of a professional",
)
async def get_availability(
    clinic_id: int,
    service: Availability,
    professional_id: int = Query(...),
    day: str = Query(..., alias="date"),
    duration_minutes: int = Query(...),
    work_start: str | None = Query(None),
    work_end: str | None = Query(None),
) -> AvailabilityResponse:
    """
    Generate a professional's slots for one day.

    Args:
        clinic_id: Clinic ID
        service: Availability service
        professional_id: Professional (user) ID
        day: Day to inspect, YYYY-MM-DD
        duration_minutes: Length of the booking to place
        work_start: Window start, defaults to the clinic's hours
        work_end: Window end, defaults to the clinic's hours

    Returns:
        Every candidate slot with its availability
    """
    try:
        query = AvailabilityQuery(
            professional_id=professional_id,
            clinic_id=clinic_id,
            date=day,
            duration_minutes=duration_minutes,
            work_start=work_start,
            work_end=work_end,
        )
    except ValidationError as e:
        error = e.errors()[0]
        raise ValidationException(
            error["msg"],
            details={"field": ".".join(str(part) for part in error["loc"]) or None},
        ) from e

    slots = await service.get_available_slots(
        query.professional_id,
        query.clinic_id,
        date.fromisoformat(query.date),
        query.duration_minutes,
        work_start=query.work_start,
        work_end=query.work_end,
    )
    return AvailabilityResponse(
        professional_id=query.professional_id,
        date=query.date,
        duration_minutes=query.duration_minutes,
        slots=slots,
    )
