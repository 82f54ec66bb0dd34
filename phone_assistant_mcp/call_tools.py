"""
HTTP tools handed to the phone assistant with every call request.

The phone assistant invokes these endpoints on this server while the call is
running (confirming information) or once it ends (posting the result).
"""

import json
from typing import Dict, List, Optional

from pydantic import TypeAdapter

from phone_assistant_mcp.models.call_models import HttpTool, ToolAuthentication, ToolParameter

CONVERSATION_RESULT_PATH = "/api/phone/conversation-result"
CONFIRM_INFO_PATH = "/api/phone/confirm-info"
CALLBACK_API_KEY_HEADER = "X-MCP-API-Key"

SCENARIOS = ("consulta_medica", "soporte_tecnico", "ventas", "servicio_cliente")

_tool_list_adapter = TypeAdapter(List[HttpTool])


def _param(name: str, type_: str, description: str, required: bool = True) -> ToolParameter:
    return ToolParameter(name=name, type=type_, description=description, required=required)


def _auth(api_key: str) -> ToolAuthentication:
    return ToolAuthentication(type="api_key", header=CALLBACK_API_KEY_HEADER, key=api_key)


def build_callback_tool(callback_url: str, api_key: str) -> HttpTool:
    """``responder_al_mcp``: the phone assistant posts the conversation result with it."""
    return HttpTool(
        name="responder_al_mcp",
        description="Envía el resultado de la conversación telefónica de vuelta al MCP",
        endpoint=f"{callback_url.rstrip('/')}{CONVERSATION_RESULT_PATH}",
        method="POST",
        parameters=[
            _param("callId", "string", "ID único de la llamada"),
            _param("usuario", "string", "Nombre del usuario que recibió la llamada"),
            _param("telefono", "string", "Número de teléfono llamado"),
            _param("status", "string", "Estado final de la llamada (completed, failed, timeout, cancelled)"),
            _param("duration", "number", "Duración de la llamada en segundos"),
            _param("resumen_conversacion", "string", "Resumen natural y conversacional de lo que se habló"),
            _param("resultado_accion", "string", "Qué se logró o decidió en la llamada", required=False),
            _param("informacion_obtenida", "string", "Información estructurada extraída (JSON string)", required=False),
            _param("transcripcion", "string", "Transcripción completa en JSON si está disponible", required=False),
            _param("metadata", "string", "Metadatos adicionales en JSON", required=False),
        ],
        authentication=_auth(api_key),
    )


def build_basic_tools(callback_url: str, api_key: str) -> List[HttpTool]:
    """Tools included in every call request."""
    return [
        HttpTool(
            name="confirmar_informacion",
            description="Confirma información importante obtenida durante la conversación",
            endpoint=f"{callback_url.rstrip('/')}{CONFIRM_INFO_PATH}",
            method="POST",
            parameters=[
                _param("callId", "string", "ID de la llamada"),
                _param("tipo_informacion", "string", "Tipo de información (contacto, cita, preferencia, etc.)"),
                _param("datos", "string", "Datos confirmados en formato JSON"),
                _param("usuario_confirmo", "boolean", "Si el usuario confirmó explícitamente"),
            ],
            authentication=_auth(api_key),
        )
    ]


def build_scenario_tools(scenario: str, callback_url: str, api_key: str) -> List[HttpTool]:
    """
    Extra tools for a predefined conversation scenario.

    Raises:
        ValueError: If the scenario is unknown
    """
    base = callback_url.rstrip('/')
    call_id = _param("callId", "string", "ID de la llamada")

    scenarios: Dict[str, List[HttpTool]] = {
        "consulta_medica": [
            HttpTool(
                name="registrar_sintomas",
                description="Registra síntomas reportados por el paciente",
                endpoint=f"{base}/api/medical/symptoms",
                parameters=[
                    call_id,
                    _param("sintomas", "string", "Lista de síntomas"),
                    _param("severidad", "string", "Nivel de severidad (leve, moderado, grave)"),
                    _param("duracion", "string", "Duración de los síntomas", required=False),
                ],
                authentication=_auth(api_key),
            )
        ],
        "soporte_tecnico": [
            HttpTool(
                name="registrar_problema",
                description="Registra el problema técnico reportado",
                endpoint=f"{base}/api/support/issue",
                parameters=[
                    call_id,
                    _param("tipo_problema", "string", "Categoría del problema"),
                    _param("descripcion", "string", "Descripción detallada"),
                    _param("prioridad", "string", "Prioridad (baja, media, alta, crítica)"),
                ],
                authentication=_auth(api_key),
            )
        ],
        "ventas": [
            HttpTool(
                name="registrar_interes",
                description="Registra el interés del cliente en productos/servicios",
                endpoint=f"{base}/api/sales/interest",
                parameters=[
                    call_id,
                    _param("producto_interes", "string", "Producto de interés"),
                    _param("nivel_interes", "string", "Nivel de interés (bajo, medio, alto)"),
                    _param("presupuesto", "string", "Rango de presupuesto", required=False),
                    _param("timeframe", "string", "Marco temporal para compra", required=False),
                ],
                authentication=_auth(api_key),
            )
        ],
        "servicio_cliente": [
            HttpTool(
                name="registrar_consulta",
                description="Registra la consulta o queja del cliente",
                endpoint=f"{base}/api/customer/query",
                parameters=[
                    call_id,
                    _param("tipo_consulta", "string", "Tipo de consulta (queja, sugerencia, consulta)"),
                    _param("departamento", "string", "Departamento responsable"),
                    _param("resolucion_requerida", "boolean", "Si requiere seguimiento"),
                ],
                authentication=_auth(api_key),
            )
        ],
    }

    if scenario not in scenarios:
        raise ValueError(f"Unknown scenario: {scenario}. Expected one of {', '.join(SCENARIOS)}")
    return scenarios[scenario]


def parse_custom_tools(raw: Optional[str]) -> List[HttpTool]:
    """
    Parse the ``herramientas_personalizadas`` JSON array.

    Raises:
        ValueError: If the string is not a JSON array of valid tools
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in herramientas_personalizadas: {e}") from e
    if not isinstance(data, list):
        raise ValueError("herramientas_personalizadas must be a JSON array")
    return _tool_list_adapter.validate_python(data)
