"""
Pydantic models for calls, callbacks and ledger records.

Wire names follow the phone assistant API (camelCase ``callId``,
``lastUpdate``...); Python attributes are snake_case. Models accept either
form on input and are dumped with ``by_alias=True``.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidatorFunctionWrapHandler,
    field_validator,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Primitive-valued payloads (log details, extracted call information)
Primitive = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]
InfoValue = Union[Primitive, List[Any], Dict[str, Any]]
Details = Dict[str, InfoValue]


class CallState(str, Enum):
    """Lifecycle status of a call."""
    PENDING = "pending"
    RINGING = "ringing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    CallState.COMPLETED, CallState.FAILED, CallState.TIMEOUT, CallState.CANCELLED
})

LogLevel = Literal["info", "warn", "error", "debug"]
LogComponent = Literal["mcp", "phone", "callback", "client"]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable dict using wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CallStatus(_WireModel):
    """Status record for one outstanding or recently finished call."""
    call_id: str = Field(..., alias="callId")
    status: CallState = CallState.PENDING
    start_time: Optional[datetime] = Field(None, alias="startTime")
    last_update: datetime = Field(default_factory=utc_now, alias="lastUpdate")
    duration: Optional[float] = None
    usuario: str = ""
    telefono: str = ""
    proposito: str = ""


class SystemLogEntry(_WireModel):
    """One notable system event."""
    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    level: LogLevel = "info"
    component: LogComponent
    action: str
    details: Details = Field(default_factory=dict)
    user_id: Optional[str] = Field(None, alias="userId")
    call_id: Optional[str] = Field(None, alias="callId")


class ConversationProcessingResult(_WireModel):
    """Outcome of processing one conversation callback."""
    call_id: str = Field(..., alias="callId")
    success: bool
    processed: bool
    response_for_user: str
    actions_taken: Optional[List[str]] = None
    errors: Optional[List[str]] = None
    processed_at: datetime = Field(default_factory=utc_now)


class ConversationTurn(_WireModel):
    """A turn in the call transcript."""
    timestamp: str
    speaker: Literal["assistant", "user"]
    message: str


class CallMetadata(_WireModel):
    """Call quality metadata reported by the phone assistant."""
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    quality: Optional[Literal["excellent", "good", "fair", "poor"]] = None
    interruptions: int = 0


def _decode_json_string(v: Any) -> Any:
    if isinstance(v, str):
        if not v.strip():
            return None
        return json.loads(v)
    return v


class ConversationResult(_WireModel):
    """
    Conversation result posted back by the phone assistant.

    Only ``callId``, ``usuario``, ``status``, ``duration`` and
    ``resumen_conversacion`` are validated strictly. The callback tool sends
    the structured fields as JSON strings; ``informacion_obtenida`` that is not
    a JSON object is kept under ``detalle``, and an unreadable ``transcripcion``
    or ``metadata`` is dropped.
    """
    call_id: str = Field(..., alias="callId")
    usuario: str
    telefono: str = ""
    status: Literal["completed", "failed", "timeout", "cancelled"]
    duration: float
    resumen_conversacion: str
    resultado_accion: Optional[str] = None
    informacion_obtenida: Optional[Details] = None
    transcripcion: Optional[List[ConversationTurn]] = None
    metadata: Optional[CallMetadata] = None

    @field_validator("informacion_obtenida", mode="before")
    @classmethod
    def parse_information(cls, v: Any) -> Any:
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                v = json.loads(v)
            except ValueError:
                return {"detalle": v}
        if v is None or isinstance(v, dict):
            return v
        return {"detalle": v}

    @field_validator("transcripcion", "metadata", mode="wrap")
    @classmethod
    def parse_optional_structure(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(_decode_json_string(v))
        except ValueError:
            return None


class ToolParameter(_WireModel):
    """Parameter of an HTTP tool."""
    name: str
    type: Literal["string", "number", "boolean", "integer"]
    description: str
    required: bool


class ToolAuthentication(_WireModel):
    type: Literal["api_key", "bearer", "basic"]
    key: Optional[str] = None
    header: Optional[str] = None


class HttpTool(_WireModel):
    """HTTP tool the phone assistant may invoke during a call."""
    name: str
    description: str
    endpoint: str
    method: Literal["GET", "POST", "PUT", "DELETE"] = "POST"
    parameters: List[ToolParameter] = Field(default_factory=list)
    authentication: Optional[ToolAuthentication] = None


class PhoneCallRequest(_WireModel):
    """Request sent to the phone assistant to start a call."""
    usuario: str
    telefono: str
    timeout: int = 40
    proposito: str
    contexto: Optional[str] = None
    herramientas: List[HttpTool] = Field(default_factory=list)


class PhoneCallResponse(_WireModel):
    """Phone assistant answer to a call initiation."""
    success: bool = True
    call_id: str = Field(..., alias="callId")
    message: str
    estimated_duration: Optional[float] = Field(None, alias="estimatedDuration")


class DailyStats(_WireModel):
    date: str
    calls: int
    success_rate: float = Field(..., alias="successRate")
    average_duration: float = Field(..., alias="averageDuration")


class PurposeCount(_WireModel):
    proposito: str
    count: int


class CallMetrics(_WireModel):
    """Aggregated call statistics."""
    total_calls: int = Field(0, alias="totalCalls")
    successful_calls: int = Field(0, alias="successfulCalls")
    failed_calls: int = Field(0, alias="failedCalls")
    average_duration: float = Field(0, alias="averageDuration")
    calls_by_status: Dict[str, int] = Field(default_factory=dict, alias="callsByStatus")
    daily_stats: List[DailyStats] = Field(default_factory=list, alias="dailyStats")
    top_purposes: List[PurposeCount] = Field(default_factory=list, alias="topPurposes")
