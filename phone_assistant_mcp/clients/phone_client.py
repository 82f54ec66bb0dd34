"""
Phone assistant API client.

Handles all interactions with the phone assistant service:
- Call initiation (with the MCP callback tool attached)
- Call status lookup
- Call cancellation
- Health and metrics
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx
from httpx import AsyncClient, Response

from phone_assistant_mcp.call_tools import build_callback_tool
from phone_assistant_mcp.config import Settings, get_settings
from phone_assistant_mcp.models.call_models import CallStatus, PhoneCallRequest, PhoneCallResponse
from phone_assistant_mcp.utils.exceptions import PhoneAssistantAPIError
from phone_assistant_mcp.utils.ids import generate_call_id

logger = logging.getLogger(__name__)

USER_AGENT = "MCP-PhoneAssistant/1.0"
DEFAULT_CALL_MESSAGE = "Llamada telefónica iniciada correctamente"
MAX_RETRY_DELAY = 10.0

T = TypeVar("T")


def _is_retryable(error: PhoneAssistantAPIError) -> bool:
    if error.code == "NO_RESPONSE":
        return True
    return error.status_code is not None and error.status_code >= 500


def _parse_call_response(data: Any) -> PhoneCallResponse:
    """
    Build the initiation response from the ``/call`` body.

    Raises:
        ValueError: The body is not a JSON object
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")

    call_id = data.get("callId")
    estimated = data.get("estimatedDuration")
    if isinstance(estimated, bool) or not isinstance(estimated, (int, float)):
        estimated = None

    return PhoneCallResponse(
        success=True,
        call_id=str(call_id) if call_id not in (None, "") else generate_call_id(),
        message=str(data.get("message") or DEFAULT_CALL_MESSAGE),
        estimated_duration=estimated,
    )


class PhoneClient:
    """Client for the phone assistant API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize phone assistant client.

        Args:
            settings: Application settings (defaults to the global settings)
            transport: Optional httpx transport, used by tests to mock the API
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.phone_api_url.rstrip('/')
        self.api_key = self.settings.phone_api_key
        self.timeout = self.settings.phone_timeout / 1000
        self.retries = self.settings.phone_retries
        self.retry_base_delay = self.settings.phone_retry_base_delay
        self._transport = transport

        self.client: Optional[AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if not self.client:
            self.client = AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "X-API-Key": self.api_key,
                    "Content-Type": "application/json",
                    "User-Agent": USER_AGENT,
                },
                transport=self._transport,
            )
            logger.info(f"Phone assistant client initialized for {self.base_url}")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Phone assistant client closed")

    async def _request(self, method: str, endpoint: str, **kwargs) -> Response:
        """
        Make a single HTTP request.

        Raises:
            PhoneAssistantAPIError: ``HTTP_<status>`` for error responses,
                ``NO_RESPONSE`` when the API could not be reached and
                ``REQUEST_ERROR`` for anything else
        """
        if not self.client:
            await self.connect()

        logger.debug(f"📤 {method} {endpoint}")
        try:
            response = await self.client.request(method, endpoint, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"❌ No response from phone assistant: {e}")
            raise PhoneAssistantAPIError(
                f"No response from phone assistant: {e}", code="NO_RESPONSE"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Request error: {e}")
            raise PhoneAssistantAPIError(f"Request error: {e}", code="REQUEST_ERROR") from e

        logger.debug(f"📥 {response.status_code} {endpoint}")

        if response.status_code >= 400:
            try:
                error_data: Any = response.json() if response.content else {}
            except ValueError:
                error_data = response.text
            message = error_data.get("message") if isinstance(error_data, dict) else None
            raise PhoneAssistantAPIError(
                message or f"HTTP {response.status_code}",
                code=f"HTTP_{response.status_code}",
                status_code=response.status_code,
                details=error_data,
            )

        return response

    async def with_retry(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        """
        Run ``operation`` retrying on connection failures and 5xx responses.

        Delays grow exponentially from ``phone_retry_base_delay`` and are
        capped at ``MAX_RETRY_DELAY`` seconds.
        """
        last_error: Optional[PhoneAssistantAPIError] = None

        for attempt in range(1, self.retries + 1):
            try:
                return await operation()
            except PhoneAssistantAPIError as e:
                last_error = e
                if not _is_retryable(e) or attempt == self.retries:
                    raise
                delay = min(self.retry_base_delay * (2 ** (attempt - 1)), MAX_RETRY_DELAY)
                logger.warning(
                    f"{label} failed (attempt {attempt}/{self.retries}): {e}; retrying in {delay}s"
                )
                await asyncio.sleep(delay)

        # retries is validated positive, so the loop always returns or raises
        raise last_error

    async def make_phone_call(self, request: PhoneCallRequest) -> PhoneCallResponse:
        """
        Ask the phone assistant to place a call.

        The ``responder_al_mcp`` tool is appended so the assistant can post
        the conversation result back to this server.

        Raises:
            PhoneAssistantAPIError: code ``CALL_FAILED``
        """
        callback_tool = build_callback_tool(
            self.settings.mcp_callback_url, self.settings.mcp_callback_api_key
        )
        body = request.model_copy(update={"herramientas": [*request.herramientas, callback_tool]})

        logger.info(f"📞 Initiating call to {request.usuario} ({request.telefono})")
        try:
            response = await self._request("POST", "/call", json=body.to_dict())
            data = response.json() if response.content else None
            call_response = _parse_call_response(data)
        except PhoneAssistantAPIError as e:
            raise PhoneAssistantAPIError(
                f"Error al iniciar llamada: {e}", code="CALL_FAILED",
                status_code=e.status_code, details={"cause": e.code, "response": e.details},
            ) from e
        except ValueError as e:
            raise PhoneAssistantAPIError(
                f"Error al iniciar llamada: invalid response body ({e})", code="CALL_FAILED"
            ) from e

        logger.info(f"✅ Call initiated: {call_response.call_id}")
        return call_response

    async def get_call_status(self, call_id: str) -> CallStatus:
        """
        Current status of a call as reported by the phone assistant.

        Raises:
            PhoneAssistantAPIError: code ``STATUS_FAILED``
        """
        async def fetch() -> Dict[str, Any]:
            response = await self._request("GET", f"/call/{call_id}/status")
            data = response.json()
            if not isinstance(data, dict):
                raise PhoneAssistantAPIError(
                    f"Unexpected status payload: {data!r}", code="INVALID_RESPONSE",
                    status_code=response.status_code, details=data,
                )
            return data

        try:
            data = await self.with_retry(fetch, f"Status lookup for {call_id}")
            data["callId"] = call_id
            return CallStatus.model_validate(data)
        except PhoneAssistantAPIError as e:
            raise PhoneAssistantAPIError(
                f"Error al obtener estado: {e}", code="STATUS_FAILED",
                status_code=e.status_code, details={"cause": e.code, "response": e.details},
            ) from e
        except ValueError as e:
            raise PhoneAssistantAPIError(
                f"Error al obtener estado: invalid status payload ({e})", code="STATUS_FAILED"
            ) from e

    async def cancel_call(self, call_id: str) -> bool:
        """
        Cancel a call. Any 2xx answer counts as success.

        Raises:
            PhoneAssistantAPIError: code ``CANCEL_FAILED``
        """
        try:
            response = await self._request("POST", f"/call/{call_id}/cancel")
        except PhoneAssistantAPIError as e:
            raise PhoneAssistantAPIError(
                f"Error al cancelar llamada: {e}", code="CANCEL_FAILED",
                status_code=e.status_code, details={"cause": e.code, "response": e.details},
            ) from e

        logger.info(f"🛑 Call cancelled: {call_id}")
        return 200 <= response.status_code < 300

    async def health_check(self) -> bool:
        """True when the phone assistant answers ``GET /health`` with 200. Never raises."""
        try:
            response = await self._request("GET", "/health")
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"Phone assistant health check failed: {e}")
            return False

    async def get_metrics(self) -> Dict[str, Any]:
        """
        Metrics reported by the phone assistant itself.

        Raises:
            PhoneAssistantAPIError: code ``METRICS_FAILED``
        """
        try:
            response = await self._request("GET", "/metrics")
            return response.json()
        except PhoneAssistantAPIError as e:
            raise PhoneAssistantAPIError(
                f"Error al obtener métricas: {e}", code="METRICS_FAILED",
                status_code=e.status_code, details={"cause": e.code, "response": e.details},
            ) from e
        except ValueError as e:
            raise PhoneAssistantAPIError(
                f"Error al obtener métricas: invalid response body ({e})", code="METRICS_FAILED"
            ) from e
