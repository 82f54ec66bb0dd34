"""Fixtures running the FastAPI app against a mocked phone assistant API."""

import httpx
import pytest
from fastapi.testclient import TestClient

from phone_assistant_mcp import main
from phone_assistant_mcp.clients import PhoneClient
from phone_assistant_mcp.config import reload_settings

AUTH = {"Authorization": "Bearer test-token"}
CALLBACK_HEADERS = {"X-MCP-API-Key": "test-callback-key"}


def phone_api(request: httpx.Request) -> httpx.Response:
    """Minimal stand-in for the phone assistant API."""
    path = request.url.path
    if path == "/call":
        return httpx.Response(200, json={"callId": "call_it_001", "message": "Llamada en curso", "estimatedDuration": 60})
    if path.endswith("/status"):
        return httpx.Response(200, json={"status": "ringing"})
    if path.endswith("/cancel"):
        return httpx.Response(200, json={"success": True})
    if path == "/health":
        return httpx.Response(200, json={"status": "ok"})
    return httpx.Response(404)


@pytest.fixture
def client(monkeypatch):
    reload_settings()
    monkeypatch.setattr(
        main, "PhoneClient",
        lambda settings: PhoneClient(settings, transport=httpx.MockTransport(phone_api)),
    )
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def rpc(client):
    """Send one JSON-RPC request to /mcp."""
    def send(method, params=None, request_id=1, headers=AUTH):
        body = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            body["params"] = params
        return client.post("/mcp", json=body, headers=headers)
    return send


@pytest.fixture
def call_tool(rpc):
    """Call an MCP tool and return the JSON-RPC result."""
    def send(name, arguments=None):
        response = rpc("tools/call", {"name": name, "arguments": arguments or {}})
        assert response.status_code == 200
        return response.json()["result"]
    return send
