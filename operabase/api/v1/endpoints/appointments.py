"""Appointment endpoints."""

from fastapi import APIRouter, Query, status

from operabase.core.exceptions import (
    AppException,
    ConflictException,
    NotFoundException,
    PolicyViolationException,
    ValidationException,
)
from operabase.dependencies import Appointments
from operabase.schemas.appointments import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentCreateBody,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    SchedulingErrorKind,
    SchedulingResult,
)

router = APIRouter()

_ERROR_EXCEPTIONS: dict[SchedulingErrorKind, type[AppException]] = {
    SchedulingErrorKind.VALIDATION: ValidationException,
    SchedulingErrorKind.NOT_FOUND: NotFoundException,
    SchedulingErrorKind.POLICY_VIOLATION: PolicyViolationException,
    SchedulingErrorKind.CONFLICT: ConflictException,
}


def unwrap_result(result: SchedulingResult) -> AppointmentResponse:
    """
    Return the appointment of a successful result or raise its error.

    Args:
        result: Outcome of a scheduling operation

    Returns:
        The affected appointment

    Raises:
        AppException: Subclass matching the error kind, with the structured
            error as details
    """
    if result.success and result.appointment is not None:
        return result.appointment

    error = result.error
    exception_class = _ERROR_EXCEPTIONS.get(error.kind, ValidationException)
    raise exception_class(
        error.message,
        details=error.model_dump(mode="json", exclude_none=True),
    )


@router.post(
    "/clinics/{clinic_id}/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new appointment",
)
async def create_appointment(
    clinic_id: int,
    data: AppointmentCreateBody,
    service: Appointments,
) -> AppointmentResponse:
    """
    Book an appointment in a clinic.

    Args:
        clinic_id: Clinic ID
        data: Appointment creation data
        service: Appointment service

    Returns:
        Created appointment
    """
    payload = AppointmentCreate(clinic_id=clinic_id, **data.model_dump())
    return unwrap_result(await service.create_appointment(payload))


@router.get(
    "/clinics/{clinic_id}/appointments",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    clinic_id: int,
    service: Appointments,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    professional_id: int | None = Query(None),
    contact_id: int | None = Query(None),
    date_from: str | None = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    date_to: str | None = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> AppointmentListResponse:
    """
    List a clinic's appointments with filtering.

    Args:
        clinic_id: Clinic ID
        service: Appointment service
        status_filter: Filter by status
        professional_id: Filter by professional
        contact_id: Filter by contact
        date_from: First day, inclusive
        date_to: Last day, inclusive
        limit: Page size
        offset: Items to skip

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        professional_id=professional_id,
        contact_id=contact_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return await service.list_appointments(clinic_id, filters)


@router.get(
    "/clinics/{clinic_id}/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    clinic_id: int,
    appointment_id: int,
    service: Appointments,
) -> AppointmentResponse:
    """
    Get appointment details.

    Args:
        clinic_id: Clinic ID
        appointment_id: Appointment ID
        service: Appointment service

    Returns:
        Appointment details

    Raises:
        NotFoundException: If the appointment does not exist in this clinic
    """
    appointment = await service.get_appointment(appointment_id, clinic_id)
    if appointment is None:
        raise NotFoundException("Appointment not found")
    return appointment


@router.patch(
    "/clinics/{clinic_id}/appointments/{appointment_id}/schedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    clinic_id: int,
    appointment_id: int,
    data: AppointmentReschedule,
    service: Appointments,
) -> AppointmentResponse:
    """Move an appointment to a new date and time."""
    return unwrap_result(await service.reschedule_appointment(appointment_id, clinic_id, data))


@router.patch(
    "/clinics/{clinic_id}/appointments/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    clinic_id: int,
    appointment_id: int,
    data: AppointmentStatusUpdate,
    service: Appointments,
) -> AppointmentResponse:
    """Move an appointment through its lifecycle."""
    return unwrap_result(await service.update_appointment_status(appointment_id, clinic_id, data))


@router.post(
    "/clinics/{clinic_id}/appointments/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    clinic_id: int,
    appointment_id: int,
    data: AppointmentCancel,
    service: Appointments,
) -> AppointmentResponse:
    """
    Cancel an appointment.

    The initiator is kept in the status, so the freed slot becomes bookable
    again immediately.
    """
    return unwrap_result(await service.cancel_appointment(appointment_id, clinic_id, data))
