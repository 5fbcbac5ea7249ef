"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.core.redis_client import CacheManager, get_cache_manager
from operabase.database import get_db
from operabase.services.ai_pause_service import AiPauseService
from operabase.services.appointment_service import AppointmentService
from operabase.services.availability_service import AvailabilityService
from operabase.services.clinic_service import ClinicService
from operabase.services.conversation_service import ConversationService


def get_ai_pause_service() -> AiPauseService:
    """Pause policy bound to the system clock."""
    return AiPauseService()


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
Cache = Annotated[CacheManager | None, Depends(get_cache_manager)]
PauseService = Annotated[AiPauseService, Depends(get_ai_pause_service)]


def get_clinic_service(cache: Cache) -> ClinicService:
    """Clinic configuration service backed by the shared cache."""
    return ClinicService(cache)


Clinics = Annotated[ClinicService, Depends(get_clinic_service)]


def get_appointment_service(db: DatabaseSession, clinic_service: Clinics) -> AppointmentService:
    """Appointment lifecycle service for the request's session."""
    return AppointmentService(db, clinic_service=clinic_service)


def get_availability_service(db: DatabaseSession, clinic_service: Clinics) -> AvailabilityService:
    """Availability service for the request's session."""
    return AvailabilityService(db, clinic_service=clinic_service)


def get_conversation_service(db: DatabaseSession, pause_service: PauseService) -> ConversationService:
    """Conversation assistant-state service for the request's session."""
    return ConversationService(db, pause_service=pause_service)


Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
Availability = Annotated[AvailabilityService, Depends(get_availability_service)]
Conversations = Annotated[ConversationService, Depends(get_conversation_service)]
