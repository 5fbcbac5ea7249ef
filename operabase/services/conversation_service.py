"""Conversation assistant state: pause persistence and read-time expiry."""

from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError
from sqlalchemy import and_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from operabase.config import settings
from operabase.models.conversations import conversations, livia_configurations
from operabase.schemas.ai_pause import (
    MANUAL_DEACTIVATION_REASON,
    AiPauseConfig,
    AiPauseContext,
    AiPauseEvaluation,
    ConversationAiState,
    MessageEvent,
)
from operabase.services.ai_pause_service import AiPauseService

logger = structlog.get_logger()


class ConversationService:
    """Service applying the pause policy to stored conversations."""

    def __init__(self, db: AsyncSession, pause_service: AiPauseService | None = None):
        """Initialize service with database session and pause policy."""
        self.db = db
        self.pause_service = pause_service or AiPauseService()

    async def get_pause_config(self, clinic_id: int) -> AiPauseConfig | None:
        """
        Resolve the clinic's pause duration.

        Clinics without an active assistant configuration use the configured
        defaults. Lookup failures return None so no pause is applied.

        Args:
            clinic_id: Clinic ID

        Returns:
            Pause configuration, or None when it cannot be resolved
        """
        stmt = (
            select(livia_configurations.c.off_duration, livia_configurations.c.off_unit)
            .where(
                and_(
                    livia_configurations.c.clinic_id == clinic_id,
                    livia_configurations.c.is_active.is_(True),
                )
            )
            .order_by(livia_configurations.c.id.desc())
            .limit(1)
        )
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(stmt)
                row = result.mappings().first()
        except SQLAlchemyError as e:
            logger.error("ai_pause_config_lookup_failed", clinic_id=clinic_id, error=str(e))
            return None

        try:
            if row is None:
                return AiPauseConfig(
                    off_duration=settings.ai_pause_default_duration,
                    off_unit=settings.ai_pause_default_unit,
                )
            return AiPauseConfig.model_validate(dict(row))
        except ValidationError as e:
            logger.error("ai_pause_config_invalid", clinic_id=clinic_id, error=str(e))
            return None

    async def register_message(
        self,
        clinic_id: int,
        conversation_id: int,
        event: MessageEvent,
    ) -> AiPauseEvaluation | None:
        """
        Apply the pause policy to a message sent in a conversation.

        Args:
            clinic_id: Clinic ID
            conversation_id: Conversation ID
            event: The sent message

        Returns:
            The evaluation, or None if the conversation does not exist
        """
        conversation = await self._load(clinic_id, conversation_id)
        if conversation is None:
            return None

        context = AiPauseContext(
            conversation_id=conversation_id,
            clinic_id=clinic_id,
            sender_id=event.sender_id,
            sender_type=event.sender_type,
            device_type=event.device_type,
            message_content=event.message_content,
            timestamp=self.pause_service.clock(),
        )
        config = await self.get_pause_config(clinic_id)
        evaluation = self.pause_service.evaluate(
            context,
            config,
            current_ai_active=conversation["ai_active"],
            current_pause_reason=conversation["ai_pause_reason"],
        )

        if evaluation.should_pause:
            await self._update(
                clinic_id,
                conversation_id,
                {
                    "ai_paused_until": evaluation.paused_until,
                    "ai_pause_reason": evaluation.pause_reason,
                    "ai_paused_by_user_id": evaluation.paused_by_user_id,
                },
            )
            logger.info(
                "conversation_ai_paused",
                clinic_id=clinic_id,
                conversation_id=conversation_id,
                paused_until=evaluation.paused_until.isoformat(),
            )

        return evaluation

    async def set_ai_active(
        self,
        clinic_id: int,
        conversation_id: int,
        active: bool,
        user_id: int | None = None,
    ) -> ConversationAiState | None:
        """
        Explicitly switch the assistant on or off for a conversation.

        Switching off records the ``manual`` reason, which automatic pauses
        never override. Switching on clears any pause.
        """
        if await self._load(clinic_id, conversation_id) is None:
            return None

        values: dict[str, Any] = {"ai_active": active}
        if active:
            values.update(self.pause_service.reset_pause())
        else:
            values.update(
                {
                    "ai_paused_until": None,
                    "ai_pause_reason": MANUAL_DEACTIVATION_REASON,
                    "ai_paused_by_user_id": user_id,
                }
            )

        await self._update(clinic_id, conversation_id, values)
        logger.info(
            "conversation_ai_toggled",
            clinic_id=clinic_id,
            conversation_id=conversation_id,
            ai_active=active,
            user_id=user_id,
        )
        return await self.get_ai_state(clinic_id, conversation_id)

    async def reset_pause(self, clinic_id: int, conversation_id: int) -> ConversationAiState | None:
        """Clear an automatic pause, keeping the assistant flag as is."""
        conversation = await self._load(clinic_id, conversation_id)
        if conversation is None:
            return None

        if conversation["ai_pause_reason"] != MANUAL_DEACTIVATION_REASON:
            await self._update(clinic_id, conversation_id, self.pause_service.reset_pause())

        return await self.get_ai_state(clinic_id, conversation_id)

    async def get_ai_state(self, clinic_id: int, conversation_id: int) -> ConversationAiState | None:
        """
        Read a conversation's assistant state against the current time.

        An expired pause simply reads as not paused; no sweep is needed.

        Args:
            clinic_id: Clinic ID
            conversation_id: Conversation ID

        Returns:
            Current state, or None if the conversation does not exist
        """
        conversation = await self._load(clinic_id, conversation_id)
        if conversation is None:
            return None

        now = self.pause_service.clock()
        paused_until = conversation["ai_paused_until"]
        if paused_until is not None and paused_until.tzinfo is None:
            paused_until = paused_until.replace(tzinfo=UTC)

        is_paused = self.pause_service.is_currently_paused(paused_until, now)
        return ConversationAiState(
            conversation_id=conversation_id,
            ai_active=conversation["ai_active"],
            paused_until=paused_until if is_paused else None,
            pause_reason=conversation["ai_pause_reason"],
            paused_by_user_id=conversation["ai_paused_by_user_id"],
            is_paused=is_paused,
            should_respond=self.pause_service.should_respond(
                conversation["ai_active"], paused_until, now
            ),
            time_remaining=self.pause_service.format_pause_time_remaining(paused_until, now),
        )

    async def _load(self, clinic_id: int, conversation_id: int) -> dict | None:
        stmt = select(conversations).where(
            and_(
                conversations.c.id == conversation_id,
                conversations.c.clinic_id == clinic_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def _update(self, clinic_id: int, conversation_id: int, values: dict[str, Any]) -> None:
        stmt = (
            update(conversations)
            .where(
                and_(
                    conversations.c.id == conversation_id,
                    conversations.c.clinic_id == clinic_id,
                )
            )
            .values(**values, updated_at=datetime.now(UTC))
        )
        await self.db.execute(stmt)
        await self.db.commit()
