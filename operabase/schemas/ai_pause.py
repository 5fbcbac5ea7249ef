"""Schemas for the assistant's automatic pause."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class SenderType(str, Enum):
    """Who authored a conversation message."""

    PATIENT = "patient"
    PROFESSIONAL = "professional"
    AI = "ai"
    SYSTEM = "system"


class DeviceType(str, Enum):
    """Channel a message was sent from."""

    # Typed directly on the professional's phone
    MANUAL = "manual"
    # Sent through the web app
    SYSTEM = "system"


class PauseUnit(str, Enum):
    """Unit of the configured pause duration."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


# Values stored by the Portuguese settings screen
PAUSE_UNIT_ALIASES = {
    "minutos": PauseUnit.MINUTES,
    "horas": PauseUnit.HOURS,
    "dias": PauseUnit.DAYS,
}

AUTOMATIC_PAUSE_REASON = "manual_message"
MANUAL_DEACTIVATION_REASON = "manual"


class AiPauseContext(BaseModel):
    """A message event that may pause the assistant."""

    conversation_id: str | int
    clinic_id: int
    sender_id: str
    sender_type: SenderType
    device_type: DeviceType
    message_content: str = ""
    timestamp: datetime | None = None


class AiPauseConfig(BaseModel):
    """Clinic configured pause length.

    ``off_unit`` is kept as free text; unknown units are interpreted as
    minutes when the pause is computed.
    """

    off_duration: int = Field(default=30, ge=1)
    off_unit: str = PauseUnit.MINUTES.value

    @field_validator("off_unit")
    @classmethod
    def normalize_unit(cls, v: str) -> str:
        """Lower-case and translate Portuguese aliases."""
        unit = v.strip().lower()
        alias = PAUSE_UNIT_ALIASES.get(unit)
        return alias.value if alias else unit


class AiPauseEvaluation(BaseModel):
    """Outcome of evaluating a message against the pause policy."""

    should_pause: bool
    paused_until: datetime | None = None
    pause_reason: str | None = None
    paused_by_user_id: int | None = None


class AiPauseEvaluateRequest(BaseModel):
    """Stateless evaluation request."""

    context: AiPauseContext
    config: AiPauseConfig | None = None
    current_ai_active: bool | None = None
    current_pause_reason: str | None = None


class MessageEvent(BaseModel):
    """Outbound message notification for a stored conversation."""

    sender_id: str
    sender_type: SenderType
    device_type: DeviceType
    message_content: str = ""


class AiActiveUpdate(BaseModel):
    """Explicit assistant toggle for a conversation."""

    ai_active: bool
    user_id: int | None = None


class ConversationAiState(BaseModel):
    """Assistant state of a conversation computed at read time."""

    conversation_id: int
    ai_active: bool
    paused_until: datetime | None = None
    pause_reason: str | None = None
    paused_by_user_id: int | None = None
    is_paused: bool
    should_respond: bool
    time_remaining: str | None = None
