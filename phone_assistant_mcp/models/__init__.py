"""Data models module."""

from .call_models import (
    CallState,
    TERMINAL_STATES,
    CallStatus,
    SystemLogEntry,
    ConversationProcessingResult,
    ConversationResult,
    ConversationTurn,
    CallMetadata,
    ToolParameter,
    HttpTool,
    PhoneCallRequest,
    PhoneCallResponse,
    CallMetrics,
    DailyStats,
    PurposeCount,
)
from .webhook_models import ConfirmInfoPayload, HealthCheckResponse, ErrorResponse

__all__ = [
    "CallState",
    "TERMINAL_STATES",
    "CallStatus",
    "SystemLogEntry",
    "ConversationProcessingResult",
    "ConversationResult",
    "ConversationTurn",
    "CallMetadata",
    "ToolParameter",
    "HttpTool",
    "PhoneCallRequest",
    "PhoneCallResponse",
    "CallMetrics",
    "DailyStats",
    "PurposeCount",
    "ConfirmInfoPayload",
    "HealthCheckResponse",
    "ErrorResponse",
]
