"""Integration tests for MCP protocol compliance."""

import json

import pytest

from phone_assistant_mcp.auth import BearerTokenValidator
from phone_assistant_mcp.mcp_server import MCPProtocolHandler
from phone_assistant_mcp.tools import TOOL_NAMES


@pytest.fixture
def protocol_handler():
    return MCPProtocolHandler(
        server_name="TestServer",
        server_version="1.0.0",
        bearer_validator=BearerTokenValidator(["test-token"])
    )


def test_initialize_request(protocol_handler):
    result = protocol_handler.handle_initialize({"protocolVersion": "2024-11-05", "capabilities": {}})

    assert result["protocolVersion"] == "2024-11-05"
    assert result["serverInfo"] == {"name": "TestServer", "version": "1.0.0"}


@pytest.mark.asyncio
async def test_tools_call_marks_handler_errors(protocol_handler):
    async def failing(args):
        raise RuntimeError("phone exploded")

    async def invalid(args):
        return {"error": "Missing required parameter: callId"}

    protocol_handler.register_tool("failing", "d", {"type": "object"}, failing)
    protocol_handler.register_tool("invalid", "d", {"type": "object"}, invalid)

    result = await protocol_handler.handle_tools_call({"name": "failing", "arguments": {}})
    assert result["isError"] is True
    assert "phone exploded" in result["content"][0]["text"]

    result = await protocol_handler.handle_tools_call({"name": "invalid"})
    assert result["isError"] is True


@pytest.mark.asyncio
async def test_unauthorized_request(protocol_handler):
    response = await protocol_handler.handle_request({"jsonrpc": "2.0", "id": 7, "method": "tools/list"}, None)

    assert response["id"] == 7
    assert response["error"]["code"] == -32001


@pytest.mark.asyncio
async def test_ping_and_notification_need_no_token(protocol_handler):
    pong = await protocol_handler.handle_request({"jsonrpc": "2.0", "id": 1, "method": "ping"}, None)
    assert pong["result"] == {}

    ack = await protocol_handler.handle_request({"jsonrpc": "2.0", "method": "notifications/initialized"}, None)
    assert ack is None


def test_http_tools_list(rpc):
    response = rpc("tools/list")

    assert response.status_code == 200
    names = [tool["name"] for tool in response.json()["result"]["tools"]]
    assert names == list(TOOL_NAMES)


def test_http_parse_error(client):
    response = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32700


def test_http_unknown_method_and_tool(rpc):
    assert rpc("resources/list").json()["error"]["code"] == -32601
    assert rpc("tools/call", {"name": "nope"}).json()["error"]["code"] == -32602


def test_http_requires_bearer_token(rpc):
    response = rpc("tools/list", headers={"Authorization": "Bearer wrong"})
    assert response.json()["error"]["code"] == -32001

    response = rpc("initialize", {"protocolVersion": "2024-11-05"}, headers={})
    assert response.json()["result"]["serverInfo"]["name"] == "phone-assistant-mcp-server"


def test_http_notification_is_accepted(client):
    response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert response.status_code == 202


def test_make_call_then_query(call_tool):
    result = call_tool("phone_make_call", {
        "usuario": "Ana", "telefono": "+34600111222", "proposito": "Confirmar cita",
    })
    data = json.loads(result["content"][0]["text"])
    assert result["isError"] is False
    assert data["callId"] == "call_it_001"

    status = json.loads(call_tool("phone_get_status", {"callId": "call_it_001"})["content"][0]["text"])
    assert status["found"] is True
    assert status["status"] == "ringing"

    active = json.loads(call_tool("phone_get_active_calls")["content"][0]["text"])
    assert [c["callId"] for c in active] == ["call_it_001"]

    cancel = json.loads(call_tool("phone_cancel_call", {"callId": "call_it_001"})["content"][0]["text"])
    assert cancel["success"] is True

    logs = json.loads(call_tool("phone_get_logs", {"component": "phone"})["content"][0]["text"])
    assert "call_cancelled" in [entry["action"] for entry in logs]


def test_health_and_metrics_tools(call_tool):
    health = json.loads(call_tool("phone_health_check")["content"][0]["text"])
    assert health["status"] == "healthy"
    assert health["phoneAssistant"] is True

    metrics = json.loads(call_tool("phone_get_metrics")["content"][0]["text"])
    assert metrics["totalCalls"] == 0
    assert metrics["successRate"] == 0
    assert len(metrics["dailyStats"]) == 7


def test_missing_argument_is_tool_error(call_tool):
    result = call_tool("phone_get_last_result")

    assert result["isError"] is True
    assert "callId" in result["content"][0]["text"]
