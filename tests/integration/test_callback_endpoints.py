"""Integration tests for the callback endpoints posted by the phone assistant."""

import json

from phone_assistant_mcp.config import get_settings

CALLBACK_HEADERS = {"X-MCP-API-Key": "test-callback-key"}


def conversation_result(call_id="call_it_001", **overrides):
    payload = {
        "callId": call_id,
        "usuario": "Ana",
        "telefono": "+34600111222",
        "status": "completed",
        "duration": 42,
        "resumen_conversacion": "Ana confirmó la cita.",
        "resultado_accion": "Cita confirmada",
    }
    payload.update(overrides)
    return payload


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["activeCalls"] == 0


def test_conversation_result_requires_api_key(client):
    response = client.post("/api/phone/conversation-result", json=conversation_result())

    assert response.status_code == 401
    assert response.json()["code"] == "MISSING_API_KEY"


def test_conversation_result_rejects_wrong_key(client):
    response = client.post(
        "/api/phone/conversation-result",
        json=conversation_result(),
        headers={"X-MCP-API-Key": "wrong"},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "INVALID_API_KEY"


def test_conversation_result_ip_allowlist(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "mcp_allowed_ips", "192.168.1.50")

    denied = client.post(
        "/api/phone/conversation-result",
        json=conversation_result(),
        headers={**CALLBACK_HEADERS, "X-Forwarded-For": "203.0.113.9"},
    )
    assert denied.status_code == 403
    assert denied.json() == {"error": "IP no autorizada", "code": "FORBIDDEN_IP", "ip": "203.0.113.9"}

    allowed = client.post(
        "/api/phone/conversation-result",
        json=conversation_result(),
        headers={**CALLBACK_HEADERS, "X-Forwarded-For": "192.168.1.50"},
    )
    assert allowed.status_code == 200


def test_call_lifecycle_with_callback(client, call_tool):
    call_tool("phone_make_call", {"usuario": "Ana", "telefono": "+34600111222", "proposito": "Confirmar cita"})

    response = client.post(
        "/api/phone/conversation-result", json=conversation_result(), headers=CALLBACK_HEADERS
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["callId"] == "call_it_001"
    assert body["actions_taken"] == ["conversation_completed", "action_achieved"]

    last = json.loads(call_tool("phone_get_last_result", {"callId": "call_it_001"})["content"][0]["text"])
    assert last["found"] is True
    assert "Ana confirmó la cita." in last["response_for_user"]

    active = json.loads(call_tool("phone_get_active_calls")["content"][0]["text"])
    assert active[0]["status"] == "completed"
    assert active[0]["duration"] == 42

    history = json.loads(call_tool("phone_get_conversation_history")["content"][0]["text"])
    assert len(history) == 1


def test_invalid_conversation_result_still_answers_200(client, call_tool):
    response = client.post(
        "/api/phone/conversation-result",
        json={"callId": "call_bad", "usuario": "Luis", "status": "completed"},
        headers=CALLBACK_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert "Luis" in body["response_for_user"]

    logs = json.loads(call_tool("phone_get_logs", {"level": "error"})["content"][0]["text"])
    assert logs[0]["action"] == "conversation_process_failed"


def test_confirm_info(client, call_tool):
    response = client.post(
        "/api/phone/confirm-info",
        json={
            "callId": "call_it_001",
            "tipo_informacion": "cita",
            "datos": '{"fecha": "2025-10-21"}',
            "usuario_confirmo": True,
        },
        headers=CALLBACK_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["success"] is True

    logs = json.loads(call_tool("phone_get_logs", {"component": "callback"})["content"][0]["text"])
    assert logs[0]["action"] == "information_confirmed"
    assert logs[0]["details"]["datos"] == {"fecha": "2025-10-21"}


def test_confirm_info_invalid_payload(client):
    response = client.post(
        "/api/phone/confirm-info",
        json={"callId": "call_it_001"},
        headers=CALLBACK_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYLOAD"
