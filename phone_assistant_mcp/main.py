"""
Main entry point for the Phone Assistant MCP server.

FastAPI application serving the MCP JSON-RPC endpoint and the callbacks
posted by the phone assistant.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from phone_assistant_mcp import __version__
from phone_assistant_mcp.auth import BearerTokenValidator, CallbackAuthError, verify_callback
from phone_assistant_mcp.clients import PhoneClient
from phone_assistant_mcp.config import get_settings
from phone_assistant_mcp.handlers import CallbackHandler, CallHandlers, MonitoringHandlers
from phone_assistant_mcp.ledger import CallCorrelator, CallLedger
from phone_assistant_mcp.mcp_server import PARSE_ERROR, MCPProtocolHandler
from phone_assistant_mcp.models.call_models import utc_now
from phone_assistant_mcp.models.webhook_models import ErrorResponse, HealthCheckResponse
from phone_assistant_mcp.tools import register_tools
from phone_assistant_mcp.utils.exceptions import CallbackProcessingError
from phone_assistant_mcp.utils.logger import setup_logger

logger = logging.getLogger(__name__)

SERVER_NAME = "phone-assistant-mcp-server"

# Global service instances
ledger: CallLedger = None
phone_client: PhoneClient = None
correlator: CallCorrelator = None
protocol_handler: MCPProtocolHandler = None
callback_handler: CallbackHandler = None
sweeper_task: Optional[asyncio.Task] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    global ledger, phone_client, correlator, protocol_handler, callback_handler, sweeper_task

    settings = get_settings()
    setup_logger(level=settings.log_level, log_format=settings.log_format, log_dir=settings.log_dir)

    # Startup
    logger.info("Starting Phone Assistant MCP server...")

    ledger = CallLedger(max_logs=settings.ledger_max_logs, max_history=settings.ledger_max_history)
    phone_client = PhoneClient(settings)
    await phone_client.connect()
    correlator = CallCorrelator(ledger, phone_client)

    protocol_handler = MCPProtocolHandler(
        server_name=SERVER_NAME,
        server_version=__version__,
        bearer_validator=BearerTokenValidator(settings.get_bearer_tokens_list()),
    )
    register_tools(
        protocol_handler,
        CallHandlers(correlator, settings),
        MonitoringHandlers(ledger, phone_client),
    )
    callback_handler = CallbackHandler(correlator, ledger)

    sweeper_task = asyncio.create_task(
        ledger.sweeper.run_periodically(
            settings.ledger_sweep_interval_seconds,
            settings.ledger_max_age_seconds,
        )
    )

    ledger.log_event("info", "mcp", "server_started", {"version": __version__, "tools": len(protocol_handler.tools)})
    logger.info(f"✅ Phone Assistant MCP server started ({len(protocol_handler.tools)} tools)")
    logger.info(f"Phone API: {settings.phone_api_url}")
    logger.info(f"Callback URL: {settings.mcp_callback_url}")

    yield

    # Shutdown
    logger.info("Phone Assistant MCP server shutting down...")

    if sweeper_task:
        sweeper_task.cancel()
        try:
            await sweeper_task
        except asyncio.CancelledError:
            pass
        sweeper_task = None

    if phone_client:
        await phone_client.disconnect()


# Initialize FastAPI app
app = FastAPI(
    title="Phone Assistant MCP Server",
    version=__version__,
    description="MCP tools for conversational phone calls with asynchronous result callbacks",
    lifespan=lifespan
)


@app.exception_handler(CallbackAuthError)
async def callback_auth_error_handler(request: Request, exc: CallbackAuthError) -> JSONResponse:
    body = ErrorResponse(error=exc.message, code=exc.code, ip=exc.ip)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


def authenticate_callback(request: Request) -> str:
    """Dependency guarding the callback endpoints; returns the client IP."""
    return verify_callback(request, get_settings())


@app.get("/health")
async def health_check() -> JSONResponse:
    """Liveness endpoint (no authentication)."""
    response = HealthCheckResponse(
        status="healthy",
        service=SERVER_NAME,
        version=__version__,
        active_calls=ledger.active_call_count() if ledger else 0,
        timestamp=utc_now(),
    )
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))


@app.post("/mcp")
async def mcp_endpoint(request: Request) -> Response:
    """JSON-RPC endpoint for MCP clients."""
    body = await request.body()
    try:
        request_data = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        error = protocol_handler.create_error_response(PARSE_ERROR, "Parse error")
        return JSONResponse(status_code=400, content=error)

    response = await protocol_handler.handle_request(request_data, request.headers.get("Authorization"))
    if response is None:
        return Response(status_code=202)
    return JSONResponse(content=response)


@app.post("/api/phone/conversation-result")
async def conversation_result(request: Request, client_ip: str = Depends(authenticate_callback)) -> JSONResponse:
    """
    Conversation result posted by the phone assistant (``responder_al_mcp`` tool).

    Always answers 200 once authenticated; processing failures are archived.
    """
    try:
        payload = json.loads((await request.body()).decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Invalid JSON in conversation result from {client_ip}: {e}")
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    result = callback_handler.handle_conversation_result(payload)
    return JSONResponse(content=result.to_dict())


@app.post("/api/phone/confirm-info")
async def confirm_info(request: Request, client_ip: str = Depends(authenticate_callback)) -> JSONResponse:
    """Information confirmed by the callee during the call."""
    try:
        payload = json.loads((await request.body()).decode("utf-8"))
        if not isinstance(payload, dict):
            raise CallbackProcessingError("Payload must be a JSON object")
        result = callback_handler.handle_confirm_info(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, CallbackProcessingError) as e:
        logger.warning(f"Rejected confirm-info from {client_ip}: {e}")
        body = ErrorResponse(error=str(e), code="INVALID_PAYLOAD")
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    return JSONResponse(content=result)


def main():
    """Main entry point for running the service."""
    import uvicorn

    settings = get_settings()
    host = settings.mcp_host
    port = settings.mcp_port
    log_level = settings.log_level.lower()

    logger.info(f"Starting Phone Assistant MCP server on {host}:{port}")

    uvicorn.run(
        "phone_assistant_mcp.main:app",
        host=host,
        port=port,
        log_level=log_level,
        reload=False
    )


if __name__ == "__main__":
    main()
