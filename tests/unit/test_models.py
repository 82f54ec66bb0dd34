"""Unit tests for the wire models."""

import pytest
from pydantic import ValidationError

from phone_assistant_mcp.models import CallState, CallStatus, ConfirmInfoPayload, ConversationResult
from phone_assistant_mcp.utils.ids import generate_call_id, generate_id


def test_call_state_terminal():
    assert CallState.COMPLETED.is_terminal
    assert CallState.TIMEOUT.is_terminal
    assert not CallState.PENDING.is_terminal
    assert not CallState.IN_PROGRESS.is_terminal


def test_call_status_accepts_both_field_names():
    by_alias = CallStatus.model_validate({"callId": "c1", "status": "ringing"})
    by_name = CallStatus(call_id="c1", status="ringing")

    assert by_alias.call_id == by_name.call_id == "c1"
    assert by_alias.to_dict()["callId"] == "c1"
    assert by_alias.to_dict()["status"] == "ringing"


def test_conversation_result_parses_json_strings():
    result = ConversationResult.model_validate({
        "callId": "c1",
        "usuario": "Ana",
        "status": "completed",
        "duration": "30",
        "resumen_conversacion": "ok",
        "informacion_obtenida": '{"email": "ana@example.com", "edad": 34}',
        "transcripcion": '[{"timestamp": "10:00:01", "speaker": "assistant", "message": "Hola"}]',
        "metadata": "",
    })

    assert result.informacion_obtenida == {"email": "ana@example.com", "edad": 34}
    assert result.transcripcion[0].speaker == "assistant"
    assert result.metadata is None
    assert result.duration == 30


def test_conversation_result_tolerates_unreadable_optional_fields():
    result = ConversationResult.model_validate({
        "callId": "c1",
        "usuario": "Ana",
        "status": "completed",
        "duration": 30,
        "resumen_conversacion": "ok",
        "informacion_obtenida": "[1, 2]",
        "transcripcion": "no es json",
        "metadata": '{"quality": "good"}',
    })

    assert result.informacion_obtenida == {"detalle": [1, 2]}
    assert result.transcripcion is None
    assert result.metadata.quality == "good"
    assert result.metadata.start_time is None

    bad_metadata = ConversationResult.model_validate({
        "callId": "c1", "usuario": "Ana", "status": "completed",
        "duration": 30, "resumen_conversacion": "ok",
        "metadata": {"quality": "terrible"},
    })
    assert bad_metadata.metadata is None


def test_conversation_result_rejects_unknown_status():
    with pytest.raises(ValidationError):
        ConversationResult.model_validate({
            "callId": "c1", "usuario": "Ana", "status": "ringing",
            "duration": 1, "resumen_conversacion": "ok",
        })


def test_confirm_info_payload():
    payload = ConfirmInfoPayload.model_validate({
        "callId": "c1",
        "tipo_informacion": "cita",
        "datos": '{"hora": "10:00"}',
        "usuario_confirmo": True,
    })

    assert payload.datos == {"hora": "10:00"}


def test_generated_ids():
    first, second = generate_id(), generate_id()
    assert first != second
    millis, suffix = first.split("_")
    assert millis.isdigit()
    assert len(suffix) == 13
    assert generate_call_id().startswith("call_")
