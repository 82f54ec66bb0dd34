"""Pytest configuration and fixtures."""

import os

# Settings are read from the environment; set them before the app is imported
os.environ.setdefault("BEARER_TOKENS", '["test-token"]')
os.environ.setdefault("PHONE_API_URL", "http://phone.test")
os.environ.setdefault("PHONE_API_KEY", "test-phone-key")
os.environ.setdefault("MCP_CALLBACK_URL", "http://mcp.test")
os.environ.setdefault("MCP_CALLBACK_API_KEY", "test-callback-key")
os.environ.setdefault("PHONE_RETRY_BASE_DELAY", "0")

import pytest
from unittest.mock import AsyncMock, Mock

from phone_assistant_mcp.config import Settings
from phone_assistant_mcp.ledger import CallCorrelator, CallLedger
from phone_assistant_mcp.models.call_models import CallStatus, PhoneCallResponse


@pytest.fixture
def test_settings():
    """Settings for testing (no .env lookup)."""
    return Settings(
        _env_file=None,
        phone_api_url="http://phone.test",
        phone_api_key="test-phone-key",
        phone_timeout=5000,
        phone_retries=3,
        phone_retry_base_delay=0,
        mcp_callback_url="http://mcp.test",
        mcp_callback_api_key="test-callback-key",
        mcp_allowed_ips="",
        bearer_tokens='["test-token"]',
    )


@pytest.fixture
def ledger():
    return CallLedger()


@pytest.fixture
def mock_phone_client():
    """Mock phone assistant client."""
    client = Mock()

    client.make_phone_call = AsyncMock(return_value=PhoneCallResponse(
        success=True,
        call_id="call_test_001",
        message="Llamada telefónica iniciada correctamente",
        estimated_duration=120,
    ))
    client.get_call_status = AsyncMock(return_value=CallStatus(
        call_id="call_test_001",
        status="in_progress",
    ))
    client.cancel_call = AsyncMock(return_value=True)
    client.health_check = AsyncMock(return_value=True)
    client.get_metrics = AsyncMock(return_value={})

    return client


@pytest.fixture
def correlator(ledger, mock_phone_client):
    return CallCorrelator(ledger, mock_phone_client)


@pytest.fixture
def sample_conversation_result():
    """Conversation result as posted by the responder_al_mcp tool."""
    return {
        "callId": "call_test_001",
        "usuario": "Ana García",
        "telefono": "+34600111222",
        "status": "completed",
        "duration": 95.4,
        "resumen_conversacion": "Ana confirmó la cita del martes a las 10:00.",
        "resultado_accion": "Cita confirmada",
        "informacion_obtenida": '{"fecha": "2025-10-21", "hora": "10:00", "confirmada": true}',
    }
