"""Automatic pause of the assistant after a professional's manual message."""

import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from operabase.schemas.ai_pause import (
    AUTOMATIC_PAUSE_REASON,
    MANUAL_DEACTIVATION_REASON,
    AiPauseConfig,
    AiPauseContext,
    AiPauseEvaluation,
    DeviceType,
    PauseUnit,
    SenderType,
)

logger = structlog.get_logger()

_UNIT_DELTAS = {
    PauseUnit.MINUTES.value: lambda amount: timedelta(minutes=amount),
    PauseUnit.HOURS.value: lambda amount: timedelta(hours=amount),
    PauseUnit.DAYS.value: lambda amount: timedelta(days=amount),
}

_PAUSING_DEVICES = frozenset({DeviceType.MANUAL, DeviceType.SYSTEM})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_aware(value: datetime) -> datetime:
    # Backends without timezone support hand back naive UTC timestamps
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class AiPauseService:
    """Pure decision logic for pausing automated replies.

    Nothing here touches storage or timers. Expiry is a comparison against
    the injected clock, repeated by every caller that reads the state.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        """Initialize service with an optional clock returning aware datetimes."""
        self.clock = clock or _utcnow

    def should_pause(
        self,
        context: AiPauseContext,
        current_ai_active: bool | None = None,
        current_pause_reason: str | None = None,
    ) -> bool:
        """
        Decide whether a message should suspend the assistant.

        Args:
            context: The message event
            current_ai_active: Assistant flag of the conversation
            current_pause_reason: Reason stored with the current state

        Returns:
            True only for messages a professional sent by hand or through
            the web app while the assistant is on
        """
        log = logger.bind(
            conversation_id=context.conversation_id,
            sender_type=context.sender_type.value,
            device_type=context.device_type.value,
        )

        # An explicit deactivation is never replaced by an automatic pause
        if current_ai_active is False and current_pause_reason == MANUAL_DEACTIVATION_REASON:
            log.info("ai_pause_skipped", reason="manually_deactivated")
            return False

        if current_ai_active is False:
            log.info("ai_pause_skipped", reason="already_inactive")
            return False

        if context.sender_type is SenderType.PROFESSIONAL and context.device_type in _PAUSING_DEVICES:
            log.info(
                "ai_pause_triggered",
                trigger="manual_message"
                if context.device_type is DeviceType.MANUAL
                else "system_web_message",
            )
            return True

        log.debug(
            "ai_pause_not_required",
            reason="sender_not_professional"
            if context.sender_type is not SenderType.PROFESSIONAL
            else "device_not_manual_or_system",
        )
        return False

    def calculate_pause_until(self, config: AiPauseConfig, now: datetime | None = None) -> datetime:
        """
        Compute when a pause that starts now ends.

        Args:
            config: Clinic pause duration and unit
            now: Start of the pause, defaults to the clock

        Returns:
            End of the pause
        """
        now = now or self.clock()
        duration = config.off_duration or 30
        unit = config.off_unit or PauseUnit.MINUTES.value

        to_delta = _UNIT_DELTAS.get(unit)
        if to_delta is None:
            logger.warning("ai_pause_unknown_unit", unit=unit, fallback=PauseUnit.MINUTES.value)
            to_delta = _UNIT_DELTAS[PauseUnit.MINUTES.value]

        return now + to_delta(duration)

    def is_currently_paused(self, paused_until: datetime | None, now: datetime | None = None) -> bool:
        """Whether a pause window is still open."""
        if paused_until is None:
            return False
        now = now or self.clock()
        return _as_aware(paused_until) > _as_aware(now)

    def should_respond(
        self,
        ai_active: bool,
        paused_until: datetime | None,
        now: datetime | None = None,
    ) -> bool:
        """
        Gate consulted before the assistant generates any reply.

        Args:
            ai_active: Assistant flag of the conversation
            paused_until: End of the current pause, if any
            now: Reference time, defaults to the clock

        Returns:
            True when the assistant is on and not paused
        """
        if not ai_active:
            return False
        return not self.is_currently_paused(paused_until, now)

    def evaluate(
        self,
        context: AiPauseContext,
        config: AiPauseConfig | None,
        current_ai_active: bool | None = None,
        current_pause_reason: str | None = None,
    ) -> AiPauseEvaluation:
        """
        Evaluate a message event and describe the pause to persist.

        Never raises: a missing configuration, or any failure while
        evaluating, results in no pause so the message itself still goes out.

        Args:
            context: The message event
            config: Clinic pause configuration, None if it could not be resolved
            current_ai_active: Assistant flag of the conversation
            current_pause_reason: Reason stored with the current state

        Returns:
            Pause decision with its window and actor
        """
        try:
            if not self.should_pause(context, current_ai_active, current_pause_reason):
                return AiPauseEvaluation(should_pause=False)

            if config is None:
                logger.warning(
                    "ai_pause_config_unavailable",
                    clinic_id=context.clinic_id,
                    conversation_id=context.conversation_id,
                )
                return AiPauseEvaluation(should_pause=False)

            evaluation = AiPauseEvaluation(
                should_pause=True,
                paused_until=self.calculate_pause_until(config),
                pause_reason=AUTOMATIC_PAUSE_REASON,
                paused_by_user_id=self.extract_user_id(context.sender_id),
            )
        except Exception as e:
            logger.error(
                "ai_pause_evaluation_failed",
                conversation_id=context.conversation_id,
                error=str(e),
            )
            return AiPauseEvaluation(should_pause=False)

        logger.info(
            "ai_pause_evaluated",
            conversation_id=context.conversation_id,
            paused_until=evaluation.paused_until.isoformat(),
            paused_by_user_id=evaluation.paused_by_user_id,
        )
        return evaluation

    @staticmethod
    def extract_user_id(sender_id: str | int | None) -> int | None:
        """Numeric user ID from a sender identifier, None when not numeric."""
        if sender_id is None:
            return None
        try:
            return int(str(sender_id).strip())
        except ValueError:
            return None

    @staticmethod
    def reset_pause() -> dict[str, None]:
        """Field values that clear a pause."""
        return {
            "ai_paused_until": None,
            "ai_pause_reason": None,
            "ai_paused_by_user_id": None,
        }

    def format_pause_time_remaining(
        self,
        paused_until: datetime | None,
        now: datetime | None = None,
    ) -> str | None:
        """
        Human readable remaining pause, in Portuguese as shown to clinics.

        Args:
            paused_until: End of the pause
            now: Reference time, defaults to the clock

        Returns:
            "N minuto(s)" under an hour, "N hora(s)" otherwise, rounded up;
            None when not paused
        """
        now = now or self.clock()
        if not self.is_currently_paused(paused_until, now):
            return None

        remaining = _as_aware(paused_until) - _as_aware(now)
        minutes = math.ceil(remaining.total_seconds() / 60)

        if minutes < 60:
            return f"{minutes} minuto{'s' if minutes != 1 else ''}"

        hours = math.ceil(minutes / 60)
        return f"{hours} hora{'s' if hours != 1 else ''}"
