"""Registration of the phone assistant MCP tools."""

from typing import get_args

from phone_assistant_mcp.call_tools import SCENARIOS
from phone_assistant_mcp.handlers import CallHandlers, MonitoringHandlers
from phone_assistant_mcp.models.call_models import LogComponent, LogLevel
from phone_assistant_mcp.mcp_server import MCPProtocolHandler

TOOL_NAMES = (
    "phone_make_call",
    "phone_get_status",
    "phone_cancel_call",
    "phone_get_metrics",
    "phone_get_conversation_history",
    "phone_get_active_calls",
    "phone_health_check",
    "phone_get_logs",
    "phone_get_last_result",
)

_NO_ARGS = {"type": "object", "properties": {}}

_CALL_ID_ARGS = {
    "type": "object",
    "properties": {
        "callId": {
            "type": "string",
            "description": "ID de la llamada"
        }
    },
    "required": ["callId"]
}


def register_tools(
    protocol: MCPProtocolHandler,
    call_handlers: CallHandlers,
    monitoring_handlers: MonitoringHandlers
) -> None:
    """Register every phone assistant tool on the protocol handler."""

    protocol.register_tool(
        name="phone_make_call",
        description="Realizar una llamada telefónica conversacional automatizada",
        input_schema={
            "type": "object",
            "properties": {
                "usuario": {
                    "type": "string",
                    "description": "Nombre del usuario a llamar"
                },
                "telefono": {
                    "type": "string",
                    "description": "Número de teléfono del usuario"
                },
                "proposito": {
                    "type": "string",
                    "description": "Propósito específico de la llamada"
                },
                "contexto": {
                    "type": "string",
                    "description": "Contexto adicional sobre el tema a tratar"
                },
                "timeout": {
                    "type": "number",
                    "description": "Timeout de la llamada en segundos",
                    "default": 40
                },
                "herramientas_personalizadas": {
                    "type": "string",
                    "description": "Herramientas HTTP personalizadas en formato JSON"
                },
                "escenario": {
                    "type": "string",
                    "enum": list(SCENARIOS),
                    "description": "Escenario predefinido que añade herramientas específicas"
                }
            },
            "required": ["usuario", "telefono", "proposito"]
        },
        handler=call_handlers.make_call
    )

    protocol.register_tool(
        name="phone_get_status",
        description="Obtener el estado actual de una llamada telefónica",
        input_schema=_CALL_ID_ARGS,
        handler=call_handlers.get_status
    )

    protocol.register_tool(
        name="phone_cancel_call",
        description="Cancelar una llamada telefónica en curso",
        input_schema=_CALL_ID_ARGS,
        handler=call_handlers.cancel_call
    )

    protocol.register_tool(
        name="phone_get_metrics",
        description="Obtener métricas y estadísticas de llamadas telefónicas",
        input_schema=_NO_ARGS,
        handler=monitoring_handlers.get_metrics
    )

    protocol.register_tool(
        name="phone_get_conversation_history",
        description="Obtener historial de conversaciones telefónicas recientes",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Número máximo de conversaciones a obtener",
                    "default": 20
                }
            }
        },
        handler=monitoring_handlers.get_conversation_history
    )

    protocol.register_tool(
        name="phone_get_active_calls",
        description="Obtener lista de llamadas activas",
        input_schema=_NO_ARGS,
        handler=monitoring_handlers.get_active_calls
    )

    protocol.register_tool(
        name="phone_health_check",
        description="Verificar el estado de salud del sistema telefónico",
        input_schema=_NO_ARGS,
        handler=monitoring_handlers.health_check
    )

    protocol.register_tool(
        name="phone_get_logs",
        description="Obtener logs del sistema telefónico",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Número máximo de logs",
                    "default": 50
                },
                "level": {
                    "type": "string",
                    "enum": list(get_args(LogLevel)),
                    "description": "Filtrar por nivel de log"
                },
                "component": {
                    "type": "string",
                    "enum": list(get_args(LogComponent)),
                    "description": "Filtrar por componente"
                }
            }
        },
        handler=monitoring_handlers.get_logs
    )

    protocol.register_tool(
        name="phone_get_last_result",
        description="Obtener el último resultado de conversación procesado para una llamada",
        input_schema=_CALL_ID_ARGS,
        handler=monitoring_handlers.get_last_result
    )
