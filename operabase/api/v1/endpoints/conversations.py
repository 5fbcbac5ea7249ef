"""Assistant pause endpoints."""

from fastapi import APIRouter, status

from operabase.core.exceptions import NotFoundException
from operabase.dependencies import Conversations, PauseService
from operabase.schemas.ai_pause import (
    AiActiveUpdate,
    AiPauseEvaluateRequest,
    AiPauseEvaluation,
    ConversationAiState,
    MessageEvent,
)

router = APIRouter()


def _require(state: ConversationAiState | None, conversation_id: int) -> ConversationAiState:
    if state is None:
        raise NotFoundException(f"Conversation {conversation_id} not found")
    return state


@router.post(
    "/ai-pause/evaluate",
    response_model=AiPauseEvaluation,
    status_code=status.HTTP_200_OK,
    summary="Evaluate a message against the pause policy",
)
async def evaluate_ai_pause(
    data: AiPauseEvaluateRequest,
    pause_service: PauseService,
) -> AiPauseEvaluation:
    """
    Decide whether a message pauses the assistant, without storing anything.

    Args:
        data: Message event, pause configuration and current state
        pause_service: Pause policy

    Returns:
        Pause decision
    """
    return pause_service.evaluate(
        data.context,
        data.config,
        current_ai_active=data.current_ai_active,
        current_pause_reason=data.current_pause_reason,
    )


@router.post(
    "/clinics/{clinic_id}/conversations/{conversation_id}/messages",
    response_model=AiPauseEvaluation,
    status_code=status.HTTP_200_OK,
    summary="Register a sent message",
)
async def register_message(
    clinic_id: int,
    conversation_id: int,
    event: MessageEvent,
    service: Conversations,
) -> AiPauseEvaluation:
    """
    Apply the pause policy to a message and persist any resulting pause.

    Args:
        clinic_id: Clinic ID
        conversation_id: Conversation ID
        event: The sent message
        service: Conversation service

    Returns:
        Pause decision
    """
    evaluation = await service.register_message(clinic_id, conversation_id, event)
    if evaluation is None:
        raise NotFoundException(f"Conversation {conversation_id} not found")
    return evaluation


@router.get(
    "/clinics/{clinic_id}/conversations/{conversation_id}/ai-status",
    response_model=ConversationAiState,
    status_code=status.HTTP_200_OK,
    summary="Assistant state of a conversation",
)
async def get_ai_status(
    clinic_id: int,
    conversation_id: int,
    service: Conversations,
) -> ConversationAiState:
    """Current assistant state; an expired pause reads as not paused."""
    return _require(await service.get_ai_state(clinic_id, conversation_id), conversation_id)


@router.put(
    "/clinics/{clinic_id}/conversations/{conversation_id}/ai-active",
    response_model=ConversationAiState,
    status_code=status.HTTP_200_OK,
    summary="Switch the assistant on or off",
)
async def set_ai_active(
    clinic_id: int,
    conversation_id: int,
    data: AiActiveUpdate,
    service: Conversations,
) -> ConversationAiState:
    """Explicitly toggle the assistant for a conversation."""
    state = await service.set_ai_active(clinic_id, conversation_id, data.ai_active, data.user_id)
    return _require(state, conversation_id)


@router.delete(
    "/clinics/{clinic_id}/conversations/{conversation_id}/ai-pause",
    response_model=ConversationAiState,
    status_code=status.HTTP_200_OK,
    summary="Clear an automatic pause",
)
async def reset_ai_pause(
    clinic_id: int,
    conversation_id: int,
    service: Conversations,
) -> ConversationAiState:
    """Clear an automatic pause. A manual deactivation is left in place."""
    return _require(await service.reset_pause(clinic_id, conversation_id), conversation_id)
