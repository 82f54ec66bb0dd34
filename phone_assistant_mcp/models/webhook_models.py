"""
Pydantic models for the HTTP endpoints served to the phone assistant.
"""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .call_models import Details


class ConfirmInfoPayload(BaseModel):
    """Information confirmed by the callee during a call (``confirmar_informacion`` tool)."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "callId": "call_1760870400000_k3j9x0a1b2c3d",
                "tipo_informacion": "cita",
                "datos": "{\"fecha\": \"2025-10-20\", \"hora\": \"10:00\"}",
                "usuario_confirmo": True
            }
        }
    )

    call_id: str = Field(..., alias="callId")
    tipo_informacion: str = Field(..., description="contacto, cita, preferencia, ...")
    datos: Details = Field(default_factory=dict, description="Confirmed data")
    usuario_confirmo: bool = Field(..., description="Whether the user confirmed explicitly")

    @field_validator("datos", mode="before")
    @classmethod
    def parse_datos(cls, v: Any) -> Any:
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v


class HealthCheckResponse(BaseModel):
    """Health check response for the HTTP service."""
    status: str = Field(..., description="healthy or unhealthy")
    service: str
    version: str
    active_calls: int = Field(..., alias="activeCalls")
    timestamp: datetime

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error body returned by the callback endpoints."""
    error: str
    code: str
    ip: Optional[str] = None
