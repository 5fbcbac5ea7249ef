"""Clinic service: schedule policy lookups."""

import structlog
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.config import settings
from operabase.core.redis_client import CacheManager
from operabase.models.clinics import clinics
from operabase.schemas.clinics import ClinicSchedulePolicy

logger = structlog.get_logger()


class ClinicService:
    """Service for clinic configuration consumed by scheduling."""

    def __init__(self, cache_manager: CacheManager | None = None, cache_ttl: int | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.clinic_policy_cache_ttl

    @staticmethod
    def _get_policy_cache_key(clinic_id: int) -> str:
        """Generate cache key for a clinic's schedule policy."""
        return f"clinic:{clinic_id}:schedule_policy"

    async def get_schedule_policy(
        self,
        db: AsyncSession,
        clinic_id: int,
    ) -> ClinicSchedulePolicy | None:
        """
        Load a clinic's working days, hours and lunch break.

        Lookup problems never fail the caller: a missing clinic, a database
        error or an invalid stored configuration all return None, which the
        calendar policy treats as its permissive fallback.

        Args:
            db: Database session
            clinic_id: Clinic ID

        Returns:
            Schedule policy, or None when it cannot be resolved
        """
        if self.cache:
            cached = self.cache.get_json(self._get_policy_cache_key(clinic_id))
            if cached:
                try:
                    return ClinicSchedulePolicy.model_validate(cached)
                except ValidationError:
                    self.cache.delete(self._get_policy_cache_key(clinic_id))

        # A savepoint keeps a failed lookup from aborting the caller's transaction
        try:
            async with db.begin_nested():
                result = await db.execute(select(clinics).where(clinics.c.id == clinic_id))
                row = result.mappings().first()
        except SQLAlchemyError as e:
            logger.error("clinic_policy_lookup_failed", clinic_id=clinic_id, error=str(e))
            return None

        if not row:
            logger.warning("clinic_not_found_for_policy", clinic_id=clinic_id)
            return None

        try:
            policy = ClinicSchedulePolicy.from_row(row)
        except ValidationError as e:
            logger.error("clinic_policy_invalid", clinic_id=clinic_id, error=str(e))
            return None

        if self.cache:
            self.cache.set_json(
                self._get_policy_cache_key(clinic_id),
                policy.model_dump(),
                ttl=self.cache_ttl,
            )

        return policy

    def invalidate_schedule_policy(self, clinic_id: int) -> None:
        """Drop a cached policy after the clinic's configuration changes."""
        if self.cache:
            self.cache.delete(self._get_policy_cache_key(clinic_id))
