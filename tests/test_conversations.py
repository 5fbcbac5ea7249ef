"""Tests for conversation assistant state endpoints."""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from conftest import FIXED_NOW
from operabase.schemas.ai_pause import MessageEvent
from operabase.services.ai_pause_service import AiPauseService
from operabase.services.conversation_service import ConversationService


def _url(clinic_id: int, conversation_id: int, suffix: str) -> str:
    return f"/api/v1/clinics/{clinic_id}/conversations/{conversation_id}/{suffix}"


PROFESSIONAL_MESSAGE = {
    "sender_id": "12",
    "sender_type": "professional",
    "device_type": "manual",
    "message_content": "Pode vir às 15h",
}


@pytest.mark.asyncio
async def test_professional_message_pauses_with_default_config(
    client: AsyncClient,
    test_clinic: dict,
    conversation_id: int,
    clock,
) -> None:
    """Test clinics without configuration pause for the default 30 minutes."""
    clinic_id = test_clinic["id"]

    response = await client.post(_url(clinic_id, conversation_id, "messages"), json=PROFESSIONAL_MESSAGE)
    assert response.status_code == 200
    data = response.json()
    assert data["should_pause"] is True
    assert datetime.fromisoformat(data["paused_until"]) == FIXED_NOW + timedelta(minutes=30)

    status = (await client.get(_url(clinic_id, conversation_id, "ai-status"))).json()
    assert status["ai_active"] is True
    assert status["is_paused"] is True
    assert status["should_respond"] is False
    assert status["pause_reason"] == "manual_message"
    assert status["paused_by_user_id"] == 12
    assert status["time_remaining"] == "30 minutos"

    # Expiry needs no sweep: reading after the window reports the assistant back on
    clock.advance(minutes=31)
    status = (await client.get(_url(clinic_id, conversation_id, "ai-status"))).json()
    assert status["is_paused"] is False
    assert status["should_respond"] is True
    assert status["paused_until"] is None
    assert status["time_remaining"] is None


@pytest.mark.asyncio
async def test_clinic_pause_configuration_is_used(
    client: AsyncClient,
    test_clinic: dict,
    conversation_id: int,
    pause_config: dict,
) -> None:
    """Test the clinic's configured duration and unit."""
    response = await client.post(
        _url(test_clinic["id"], conversation_id, "messages"), json=PROFESSIONAL_MESSAGE
    )
    data = response.json()
    assert datetime.fromisoformat(data["paused_until"]) == FIXED_NOW + timedelta(hours=2)


@pytest.mark.asyncio
async def test_patient_message_does_not_pause(
    client: AsyncClient,
    test_clinic: dict,
    conversation_id: int,
) -> None:
    """Test patient messages leave the assistant answering."""
    response = await client.post(
        _url(test_clinic["id"], conversation_id, "messages"),
        json={"sender_id": "5511999990000", "sender_type": "patient", "device_type": "manual"},
    )
    assert response.json()["should_pause"] is False

    status = (await client.get(_url(test_clinic["id"], conversation_id, "ai-status"))).json()
    assert status["should_respond"] is True


@pytest.mark.asyncio
async def test_manual_deactivation_blocks_automatic_pause(
    client: AsyncClient,
    test_clinic: dict,
    conversation_id: int,
) -> None:
    """Test switching the assistant off survives later messages and pause resets."""
    clinic_id = test_clinic["id"]

    response = await client.put(
        _url(clinic_id, conversation_id, "ai-active"), json={"ai_active": False, "user_id": 12}
    )
    assert response.status_code == 200
    assert response.json()["pause_reason"] == "manual"
    assert response.json()["should_respond"] is False

    response = await client.post(_url(clinic_id, conversation_id, "messages"), json=PROFESSIONAL_MESSAGE)
    assert response.json()["should_pause"] is False

    response = await client.delete(_url(clinic_id, conversation_id, "ai-pause"))
    assert response.json()["pause_reason"] == "manual"
    assert response.json()["ai_active"] is False

    response = await client.put(_url(clinic_id, conversation_id, "ai-active"), json={"ai_active": True})
    data = response.json()
    assert data["ai_active"] is True
    assert data["pause_reason"] is None
    assert data["should_respond"] is True


@pytest.mark.asyncio
async def test_reset_clears_automatic_pause(
    client: AsyncClient,
    test_clinic: dict,
    conversation_id: int,
) -> None:
    """Test clearing an automatic pause resumes replies."""
    clinic_id = test_clinic["id"]
    await client.post(_url(clinic_id, conversation_id, "messages"), json=PROFESSIONAL_MESSAGE)

    response = await client.delete(_url(clinic_id, conversation_id, "ai-pause"))
    assert response.status_code == 200
    data = response.json()
    assert data["is_paused"] is False
    assert data["pause_reason"] is None
    assert data["should_respond"] is True


@pytest.mark.asyncio
async def test_unknown_conversation(client: AsyncClient, test_clinic: dict) -> None:
    """Test unknown conversations return 404."""
    response = await client.get(_url(test_clinic["id"], 9999, "ai-status"))
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundException"

    response = await client.post(_url(test_clinic["id"], 9999, "messages"), json=PROFESSIONAL_MESSAGE)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundException"


@pytest.mark.asyncio
async def test_conversation_is_clinic_scoped(
    db_session,
    test_clinic: dict,
    no_lunch_clinic: dict,
    conversation_id: int,
) -> None:
    """Test another clinic cannot read or pause the conversation."""
    service = ConversationService(db_session, AiPauseService(clock=lambda: FIXED_NOW))
    event = MessageEvent(**PROFESSIONAL_MESSAGE)

    assert await service.get_ai_state(no_lunch_clinic["id"], conversation_id) is None
    assert await service.register_message(no_lunch_clinic["id"], conversation_id, event) is None

    evaluation = await service.register_message(test_clinic["id"], conversation_id, event)
    assert evaluation.should_pause is True
