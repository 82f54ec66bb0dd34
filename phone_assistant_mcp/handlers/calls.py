"""Call lifecycle handlers: make, query and cancel calls."""

import logging
from typing import Any, Dict, Optional

from phone_assistant_mcp.call_tools import SCENARIOS, build_basic_tools, build_scenario_tools, parse_custom_tools
from phone_assistant_mcp.config import Settings
from phone_assistant_mcp.ledger import CallCorrelator
from phone_assistant_mcp.models.call_models import PhoneCallRequest
from phone_assistant_mcp.utils.exceptions import DuplicateCallIdError, PhoneAssistantAPIError, PhoneAssistantException

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT = 40


def int_arg(args: Dict[str, Any], name: str, default: int) -> Optional[int]:
    value = args.get(name)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class CallHandlers:
    """Handlers for call operations."""

    def __init__(self, correlator: CallCorrelator, settings: Settings):
        """Initialize handlers.

        Args:
            correlator: CallCorrelator tying the phone client to the ledger
            settings: Application settings (callback URL and key for tools)
        """
        self.correlator = correlator
        self.settings = settings

    async def make_call(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Start a conversational phone call.

        Args:
            args: Tool arguments with usuario, telefono, proposito and optional
                contexto, timeout, herramientas_personalizadas, escenario

        Returns:
            Call initiation result
        """
        usuario = args.get("usuario")
        telefono = args.get("telefono")
        proposito = args.get("proposito")

        if not usuario:
            return {"error": "Missing required parameter: usuario"}
        if not telefono:
            return {"error": "Missing required parameter: telefono"}
        if not proposito:
            return {"error": "Missing required parameter: proposito"}

        timeout = int_arg(args, "timeout", DEFAULT_CALL_TIMEOUT)
        if timeout is None or timeout <= 0:
            return {"error": "Invalid parameter: timeout must be a positive integer"}

        escenario = args.get("escenario")
        if escenario and escenario not in SCENARIOS:
            return {"error": f"Invalid parameter: escenario must be one of {', '.join(SCENARIOS)}"}

        callback_url = self.settings.mcp_callback_url
        api_key = self.settings.mcp_callback_api_key
        try:
            tools = build_basic_tools(callback_url, api_key)
            if escenario:
                tools += build_scenario_tools(escenario, callback_url, api_key)
            tools += parse_custom_tools(args.get("herramientas_personalizadas"))
        except ValueError as e:
            return {"error": f"Error al parsear herramientas personalizadas: {e}"}

        request = PhoneCallRequest(
            usuario=usuario,
            telefono=telefono,
            timeout=timeout,
            proposito=proposito,
            contexto=args.get("contexto"),
            herramientas=tools,
        )

        logger.info(f"Making call to {usuario} for: {proposito}")

        try:
            response = await self.correlator.initiate_call(request)
        except PhoneAssistantAPIError as e:
            return {"success": False, "error": str(e), "code": e.code}
        except DuplicateCallIdError as e:
            return {"success": False, "error": str(e), "code": "DUPLICATE_CALL_ID"}

        return response.to_dict()

    async def get_status(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Get the status of a tracked call.

        Args:
            args: Tool arguments with callId

        Returns:
            Status projection, or found=false for unknown calls
        """
        call_id = args.get("callId")
        if not call_id:
            return {"error": "Missing required parameter: callId"}

        status = await self.correlator.refresh_status(call_id)
        if status is None:
            return {"found": False, "callId": call_id}

        result = {"found": True}
        result.update(status.to_dict())
        result.pop("startTime", None)
        return result

    async def cancel_call(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Cancel a call in progress.

        Args:
            args: Tool arguments with callId

        Returns:
            success flag and message
        """
        call_id = args.get("callId")
        if not call_id:
            return {"error": "Missing required parameter: callId"}

        logger.info(f"Cancelling call {call_id}")

        try:
            success = await self.correlator.cancel(call_id)
        except PhoneAssistantException as e:
            return {
                "success": False,
                "message": str(e),
                "code": getattr(e, "code", "CANCEL_FAILED"),
            }

        return {
            "success": success,
            "message": "Llamada cancelada exitosamente" if success else "No se pudo cancelar la llamada",
        }
