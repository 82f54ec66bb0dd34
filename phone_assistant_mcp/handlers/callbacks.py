"""Handlers for the HTTP callbacks posted by the phone assistant during and after a call."""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from phone_assistant_mcp.ledger import CallCorrelator, CallLedger
from phone_assistant_mcp.models.call_models import ConversationProcessingResult
from phone_assistant_mcp.models.webhook_models import ConfirmInfoPayload
from phone_assistant_mcp.utils.exceptions import CallbackProcessingError
from phone_assistant_mcp.utils.logger import set_call_context

logger = logging.getLogger(__name__)


class CallbackHandler:
    """Turns callback payloads into ledger updates."""

    def __init__(self, correlator: CallCorrelator, ledger: CallLedger):
        self.correlator = correlator
        self.ledger = ledger

    def handle_conversation_result(self, payload: Dict[str, Any]) -> ConversationProcessingResult:
        """
        Process the ``responder_al_mcp`` callback.

        Never raises; invalid payloads come back as an unsuccessful,
        archived processing result.
        """
        logger.info(f"📥 Conversation result received for {payload.get('callId', 'unknown')}")
        return self.correlator.on_callback_result(payload)

    def handle_confirm_info(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Record information confirmed by the callee (``confirmar_informacion`` tool).

        Raises:
            CallbackProcessingError: If the payload is invalid
        """
        try:
            info = ConfirmInfoPayload.model_validate(payload)
        except (ValidationError, ValueError) as e:
            raise CallbackProcessingError(f"Invalid confirm-info payload: {e}") from e

        set_call_context(info.call_id)
        self.ledger.log_event(
            "info", "callback", "information_confirmed",
            {
                "callId": info.call_id,
                "tipo_informacion": info.tipo_informacion,
                "datos": info.datos,
                "usuario_confirmo": info.usuario_confirmo,
            },
            call_id=info.call_id,
        )
        logger.info(f"✅ Information confirmed for {info.call_id}: {info.tipo_informacion}")

        return {
            "success": True,
            "message": "Información confirmada",
            "callId": info.call_id,
        }
