"""API v1 router configuration."""

from fastapi import APIRouter

from operabase.api.v1.endpoints import appointments, availability, conversations, health

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, tags=["Appointments"])
api_router.include_router(availability.router, tags=["Availability"])
api_router.include_router(conversations.router, tags=["AI Pause"])
