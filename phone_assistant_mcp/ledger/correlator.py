"""
Correlation between outbound call initiation and the asynchronous result callback.

Flow:
1. ``initiate_call`` asks the phone assistant to place a call and registers
   the returned call id as ``pending``.
2. Later the phone assistant posts a ``ConversationResult`` for that call id;
   ``on_callback_result`` updates the registry, builds the message for the
   user and archives it.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from phone_assistant_mcp.models.call_models import (
    CallState,
    CallStatus,
    ConversationProcessingResult,
    ConversationResult,
    Details,
    PhoneCallRequest,
    PhoneCallResponse,
)
from phone_assistant_mcp.utils.exceptions import CallbackProcessingError, PhoneAssistantException
from phone_assistant_mcp.utils.logger import set_call_context

from .call_ledger import CallLedger

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)) or value is None:
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def build_user_response(result: ConversationResult) -> str:
    """Human-readable summary of a finished conversation, shown to the MCP user."""
    text = f"📞 **Llamada completada con {result.usuario}**\n\n"
    text += f"💬 **Resumen de la conversación:**\n{result.resumen_conversacion}\n\n"

    if result.resultado_accion:
        text += f"✅ **Resultado:**\n{result.resultado_accion}\n\n"

    if result.informacion_obtenida:
        text += "📋 **Información obtenida:**\n"
        for key, value in result.informacion_obtenida.items():
            text += f"- **{key}:** {_format_value(value)}\n"
        text += "\n"

    text += f"⏱️ **Duración:** {round(result.duration)} segundos\n"
    text += f"📊 **Estado:** {'Exitosa' if result.status == 'completed' else 'Fallida'}"
    return text


def derive_actions(result: ConversationResult) -> List[str]:
    """Action tags, always in the order completed / achieved / gathered."""
    actions = []
    if result.status == "completed":
        actions.append("conversation_completed")
    if result.resultado_accion:
        actions.append("action_achieved")
    if result.informacion_obtenida:
        actions.append("information_gathered")
    return actions


def _raw_field(payload: Union[ConversationResult, Dict[str, Any]], *names: str) -> Optional[str]:
    if isinstance(payload, ConversationResult):
        return getattr(payload, names[-1], None)
    for name in names:
        if isinstance(payload, dict) and payload.get(name):
            return str(payload[name])
    return None


def _received_details(payload: Union[ConversationResult, Dict[str, Any]]) -> Details:
    """Event details for an incoming callback, read before any validation."""
    if isinstance(payload, ConversationResult):
        payload = payload.model_dump(mode="json", by_alias=True)
    resumen = payload.get("resumen_conversacion")
    return {
        "callId": _raw_field(payload, "callId", "call_id"),
        "usuario": _raw_field(payload, "usuario"),
        "status": payload.get("status"),
        "duration": payload.get("duration"),
        "resumenLength": len(resumen) if isinstance(resumen, str) else 0,
        "hasAction": bool(payload.get("resultado_accion")),
        "hasInfo": bool(payload.get("informacion_obtenida")),
    }


class CallCorrelator:
    """Ties call initiation, status refresh, cancellation and callbacks to the ledger."""

    def __init__(self, ledger: CallLedger, phone_client):
        """
        Args:
            ledger: Call ledger holding the process-wide call state
            phone_client: PhoneClient used to reach the phone assistant API
        """
        self.ledger = ledger
        self.phone_client = phone_client

    def on_initiated(
        self,
        call_id: str,
        usuario: str,
        telefono: str,
        proposito: str,
        timeout: int,
        tools_count: int = 0,
    ) -> CallStatus:
        """Register a freshly initiated call and record the ``initiate_call`` event."""
        entry = self.ledger.register_call(call_id, usuario, telefono, proposito)
        self.ledger.log_event(
            "info", "phone", "initiate_call",
            {
                "usuario": usuario,
                "telefono": telefono,
                "proposito": proposito,
                "timeout": timeout,
                "herramientasCount": tools_count,
            },
            call_id=call_id,
        )
        return entry

    async def initiate_call(self, request: PhoneCallRequest) -> PhoneCallResponse:
        """
        Place a call through the phone assistant and start tracking it.

        Raises:
            PhoneAssistantAPIError: The phone assistant refused or was unreachable
            DuplicateCallIdError: The returned call id is already tracked
        """
        try:
            response = await self.phone_client.make_phone_call(request)
            set_call_context(response.call_id)
            self.on_initiated(
                response.call_id,
                request.usuario,
                request.telefono,
                request.proposito,
                request.timeout,
                tools_count=len(request.herramientas),
            )
            return response
        except Exception as e:
            self.ledger.log_event(
                "error", "phone", "initiate_call_failed",
                {"error": str(e), "usuario": request.usuario, "proposito": request.proposito},
            )
            raise

    async def refresh_status(self, call_id: str) -> Optional[CallStatus]:
        """
        Current status of a tracked call, refreshed from the phone assistant.

        Unknown call ids return None without contacting the API. If the
        remote lookup fails the local record is returned as is.
        """
        local = self.ledger.get_call(call_id)
        if local is None:
            return None

        try:
            remote = await self.phone_client.get_call_status(call_id)
        except PhoneAssistantException as e:
            logger.warning(f"Could not fetch remote status for {call_id}, using local state: {e}")
            return local

        self._apply_transition(local, remote.status, remote.duration)
        return self.ledger.get_call(call_id) or local

    async def cancel(self, call_id: str) -> bool:
        """
        Ask the phone assistant to cancel a call.

        Raises:
            PhoneAssistantAPIError: The cancellation request failed; the
                registry is left untouched
        """
        try:
            success = await self.phone_client.cancel_call(call_id)
        except Exception as e:
            self.ledger.log_event(
                "error", "phone", "cancel_call_failed",
                {"error": str(e), "callId": call_id},
                call_id=call_id,
            )
            raise

        if success:
            entry = self.ledger.get_call(call_id)
            applied = entry is not None and self._apply_transition(entry, CallState.CANCELLED)
            self.ledger.log_event(
                "info", "phone", "call_cancelled",
                {"callId": call_id, "applied": applied},
                call_id=call_id,
            )

        return success

    def on_callback_result(
        self,
        payload: Union[ConversationResult, Dict[str, Any]]
    ) -> ConversationProcessingResult:
        """
        Process a conversation result posted by the phone assistant.

        Never raises: any failure is logged and archived as an unsuccessful
        processing result instead.
        """
        call_id = _raw_field(payload, "callId", "call_id") or "unknown"
        usuario = _raw_field(payload, "usuario") or "desconocido"
        set_call_context(call_id)

        try:
            self.ledger.log_event(
                "info", "callback", "conversation_result_received",
                _received_details(payload),
                call_id=call_id,
            )

            try:
                result = (
                    payload if isinstance(payload, ConversationResult)
                    else ConversationResult.model_validate(payload)
                )
            except ValidationError as e:
                raise CallbackProcessingError(f"Invalid conversation result: {e}") from e

            entry = self.ledger.get_call(result.call_id)
            if entry is not None:
                self._apply_transition(entry, result.status, result.duration)
            else:
                logger.info(f"Callback for untracked call {result.call_id}, archiving only")

            response_for_user = build_user_response(result)
            actions_taken = derive_actions(result)

            processing_result = ConversationProcessingResult(
                call_id=result.call_id,
                success=True,
                processed=True,
                response_for_user=response_for_user,
                actions_taken=actions_taken,
            )
            self.ledger.archive_result(processing_result)

            self.ledger.log_event(
                "info", "callback", "conversation_processed",
                {
                    "callId": result.call_id,
                    "actionsCount": len(actions_taken),
                    "actions": actions_taken,
                    "responseLength": len(response_for_user),
                },
                call_id=result.call_id,
            )
            logger.info(f"✅ Conversation result processed for {result.call_id}")
            return processing_result

        except Exception as e:
            logger.exception(f"❌ Failed to process conversation result for {call_id}")
            self.ledger.log_event(
                "error", "callback", "conversation_process_failed",
                {"error": str(e), "callId": call_id},
                call_id=call_id,
            )
            error_result = ConversationProcessingResult(
                call_id=call_id,
                success=False,
                processed=False,
                response_for_user=(
                    f"❌ Error al procesar la conversación con {usuario}. Contacta al administrador."
                ),
                errors=[str(e)],
            )
            self.ledger.archive_result(error_result)
            return error_result

    def _apply_transition(
        self,
        entry: CallStatus,
        new_status: Union[CallState, str],
        duration: Optional[float] = None,
    ) -> bool:
        """
        Move a call to ``new_status`` unless it already finished with a different status.

        Returns False when the transition was ignored.
        """
        current = CallState(entry.status)
        target = CallState(new_status)

        if current.is_terminal and target != current:
            self.ledger.log_event(
                "warn", "phone", "status_transition_ignored",
                {"callId": entry.call_id, "from": current.value, "to": target.value},
                call_id=entry.call_id,
            )
            return False

        self.ledger.update_call_status(entry.call_id, target, duration)
        return True
