"""Tests for the assistant pause policy."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient

from conftest import FIXED_NOW
from operabase.schemas.ai_pause import AiPauseConfig, AiPauseContext
from operabase.services.ai_pause_service import AiPauseService


def _context(sender_type: str = "professional", device_type: str = "manual", sender_id: str = "42") -> AiPauseContext:
    return AiPauseContext(
        conversation_id=7,
        clinic_id=1,
        sender_id=sender_id,
        sender_type=sender_type,
        device_type=device_type,
        message_content="Olá, já confirmei seu horário",
    )


@pytest.fixture
def pause_service() -> AiPauseService:
    """Pause policy on a fixed clock."""
    return AiPauseService(clock=lambda: FIXED_NOW)


def test_professional_manual_message_pauses(pause_service):
    """Test a professional's manual message pauses for the configured duration."""
    evaluation = pause_service.evaluate(
        _context(),
        AiPauseConfig(off_duration=30, off_unit="minutes"),
        current_ai_active=True,
    )

    assert evaluation.should_pause is True
    assert evaluation.paused_until == FIXED_NOW + timedelta(minutes=30)
    assert evaluation.pause_reason == "manual_message"
    assert evaluation.paused_by_user_id == 42


@pytest.mark.parametrize(
    ("sender_type", "device_type", "expected"),
    [
        ("professional", "manual", True),
        ("professional", "system", True),
        ("patient", "manual", False),
        ("ai", "system", False),
        ("system", "system", False),
    ],
)
def test_should_pause_by_sender_and_device(pause_service, sender_type, device_type, expected):
    """Test only professional messages from phone or web app pause."""
    assert pause_service.should_pause(_context(sender_type, device_type), current_ai_active=True) is expected


def test_manual_deactivation_is_never_overridden(pause_service):
    """Test an explicit deactivation blocks automatic pauses."""
    assert pause_service.should_pause(_context(), current_ai_active=False, current_pause_reason="manual") is False


def test_inactive_assistant_is_not_paused(pause_service):
    """Test no pause is computed while the assistant is off."""
    evaluation = pause_service.evaluate(
        _context(), AiPauseConfig(), current_ai_active=False, current_pause_reason=None
    )
    assert evaluation.should_pause is False
    assert evaluation.paused_until is None


def test_missing_config_does_not_pause(pause_service):
    """Test evaluation without configuration falls back to no pause."""
    evaluation = pause_service.evaluate(_context(), None, current_ai_active=True)
    assert evaluation.should_pause is False


@pytest.mark.parametrize(
    ("off_unit", "delta"),
    [
        ("minutes", timedelta(minutes=2)),
        ("hours", timedelta(hours=2)),
        ("days", timedelta(days=2)),
        ("Horas", timedelta(hours=2)),
        ("minutos", timedelta(minutes=2)),
        ("weeks", timedelta(minutes=2)),
    ],
)
def test_calculate_pause_until_units(pause_service, off_unit, delta):
    """Test pause units, aliases and the minutes fallback."""
    config = AiPauseConfig(off_duration=2, off_unit=off_unit)
    assert pause_service.calculate_pause_until(config) == FIXED_NOW + delta


def test_is_currently_paused_expires_lazily(pause_service):
    """Test the pause ends exactly at paused_until."""
    until = FIXED_NOW + timedelta(minutes=5)

    assert pause_service.is_currently_paused(until) is True
    assert pause_service.is_currently_paused(until, now=until) is False
    assert pause_service.is_currently_paused(None) is False
    # Naive timestamps are read as UTC
    assert pause_service.is_currently_paused(until.replace(tzinfo=None)) is True


def test_should_respond(pause_service):
    """Test the reply gate combines the flag and the pause window."""
    until = FIXED_NOW + timedelta(minutes=5)

    assert pause_service.should_respond(True, None) is True
    assert pause_service.should_respond(True, until) is False
    assert pause_service.should_respond(False, None) is False
    assert pause_service.should_respond(True, FIXED_NOW - timedelta(seconds=1)) is True


def test_extract_user_id():
    """Test numeric sender identifiers become user IDs."""
    assert AiPauseService.extract_user_id("42") == 42
    assert AiPauseService.extract_user_id(" 7 ") == 7
    assert AiPauseService.extract_user_id("whatsapp:+5511") is None
    assert AiPauseService.extract_user_id(None) is None


def test_reset_pause():
    """Test reset clears every pause field."""
    assert AiPauseService.reset_pause() == {
        "ai_paused_until": None,
        "ai_pause_reason": None,
        "ai_paused_by_user_id": None,
    }


@pytest.mark.parametrize(
    ("remaining", "expected"),
    [
        (timedelta(seconds=30), "1 minuto"),
        (timedelta(minutes=29, seconds=10), "30 minutos"),
        (timedelta(minutes=60), "1 hora"),
        (timedelta(minutes=61), "2 horas"),
        (timedelta(seconds=-1), None),
    ],
)
def test_format_pause_time_remaining(pause_service, remaining, expected):
    """Test remaining time is rounded up."""
    assert pause_service.format_pause_time_remaining(FIXED_NOW + remaining) == expected


def test_clock_defaults_to_aware_utc():
    """Test the default clock is timezone aware."""
    now = AiPauseService().clock()
    assert now.tzinfo is not None
    assert abs(now - datetime.now(UTC)) < timedelta(seconds=5)


@pytest.mark.asyncio
async def test_evaluate_endpoint(client: AsyncClient) -> None:
    """Test stateless evaluation over HTTP."""
    response = await client.post(
        "/api/v1/ai-pause/evaluate",
        json={
            "context": {
                "conversation_id": "5511999990000",
                "clinic_id": 1,
                "sender_id": "3",
                "sender_type": "professional",
                "device_type": "manual",
                "message_content": "Oi",
            },
            "config": {"off_duration": 1, "off_unit": "hours"},
            "current_ai_active": True,
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["should_pause"] is True
    assert data["paused_by_user_id"] == 3
    assert datetime.fromisoformat(data["paused_until"]) == FIXED_NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_evaluate_endpoint_respects_manual_deactivation(client: AsyncClient) -> None:
    """Test the manual guard over HTTP."""
    response = await client.post(
        "/api/v1/ai-pause/evaluate",
        json={
            "context": {
                "conversation_id": 1,
                "clinic_id": 1,
                "sender_id": "3",
                "sender_type": "professional",
                "device_type": "system",
            },
            "config": {"off_duration": 30, "off_unit": "minutes"},
            "current_ai_active": False,
            "current_pause_reason": "manual",
        },
    )
    assert response.status_code == 200
    assert response.json() == {
        "should_pause": False,
        "paused_until": None,
        "pause_reason": None,
        "paused_by_user_id": None,
    }
