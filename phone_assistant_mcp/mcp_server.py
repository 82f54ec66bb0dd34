"""MCP protocol handler (JSON-RPC 2.0) for the phone assistant tools."""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .auth.bearer_validator import BearerTokenValidator

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Any]]

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
UNAUTHORIZED = -32001

# Methods that do not require a bearer token
PUBLIC_METHODS = frozenset({"initialize", "notifications/initialized", "ping"})


class MCPProtocolHandler:
    """Handler for MCP protocol (JSON-RPC 2.0)."""

    # MCP Protocol version
    PROTOCOL_VERSION = "2024-11-05"

    def __init__(
        self,
        server_name: str,
        server_version: str,
        bearer_validator: BearerTokenValidator
    ):
        """Initialize MCP protocol handler.

        Args:
            server_name: Name of the MCP server
            server_version: Version of the MCP server
            bearer_validator: Bearer token validator instance
        """
        self.server_name = server_name
        self.server_version = server_version
        self.bearer_validator = bearer_validator
        self.tools: Dict[str, Dict[str, Any]] = {}
        self.tool_handlers: Dict[str, ToolHandler] = {}

    def register_tool(
        self,
        name: str,
        description: str,
        input_schema: Dict[str, Any],
        handler: ToolHandler
    ) -> None:
        """Register a tool with the MCP server.

        Args:
            name: Tool name
            description: Tool description
            input_schema: JSON Schema for tool input
            handler: Coroutine function that handles tool execution
        """
        self.tools[name] = {
            "name": name,
            "description": description,
            "inputSchema": input_schema
        }
        self.tool_handlers[name] = handler
        logger.info(f"Registered tool: {name}")

    def validate_bearer_token(self, authorization_header: Optional[str]) -> bool:
        if not authorization_header:
            return False

        return self.bearer_validator.validate_token(authorization_header)

    def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle MCP initialize method."""
        protocol_version = params.get("protocolVersion")
        if protocol_version != self.PROTOCOL_VERSION:
            logger.warning(f"Client protocol version {protocol_version} != {self.PROTOCOL_VERSION}")

        return {
            "protocolVersion": self.PROTOCOL_VERSION,
            "capabilities": {
                "tools": {}
            },
            "serverInfo": {
                "name": self.server_name,
                "version": self.server_version
            }
        }

    def handle_tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "tools": list(self.tools.values())
        }

    async def handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle tools/call method.

        The handler result is returned as one JSON text item. Handler
        exceptions and ``{"error": ...}`` results are flagged ``isError``.

        Raises:
            ValueError: Unknown tool or malformed arguments
        """
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if tool_name not in self.tool_handlers:
            raise ValueError(f"Unknown tool: {tool_name}")
        if not isinstance(arguments, dict):
            raise ValueError("Tool arguments must be an object")

        handler = self.tool_handlers[tool_name]

        try:
            result = await handler(arguments)
        except Exception as e:
            logger.exception(f"Error executing tool {tool_name}")
            return {
                "content": [{"type": "text", "text": f"Error: {e}"}],
                "isError": True
            }

        is_error = isinstance(result, dict) and "error" in result and "success" not in result
        return {
            "content": [
                {
                    "type": "text",
                    "text": json.dumps(result, indent=2, ensure_ascii=False)
                }
            ],
            "isError": is_error
        }

    def create_error_response(
        self,
        error_code: int,
        error_message: str,
        request_id: Any = None
    ) -> Dict[str, Any]:
        """Create JSON-RPC error response."""
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {
                "code": error_code,
                "message": error_message
            }
        }

    async def handle_request(
        self,
        request_data: Any,
        authorization_header: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        """Handle incoming JSON-RPC request.

        Args:
            request_data: Decoded JSON-RPC request
            authorization_header: Authorization header value

        Returns:
            JSON-RPC response, or None for notifications
        """
        if not isinstance(request_data, dict):
            return self.create_error_response(INVALID_REQUEST, "Invalid Request")

        request_id = request_data.get("id")
        method = request_data.get("method")
        params = request_data.get("params") or {}

        if method not in PUBLIC_METHODS:
            if not self.validate_bearer_token(authorization_header):
                logger.warning(f"🚫 Unauthorized MCP request: {method}")
                return self.create_error_response(
                    UNAUTHORIZED,
                    "Unauthorized: Invalid or missing bearer token",
                    request_id
                )

        try:
            if method == "initialize":
                result = self.handle_initialize(params)
            elif method == "notifications/initialized":
                logger.info("MCP client initialized")
                return None
            elif method == "ping":
                result = {}
            elif method == "tools/list":
                result = self.handle_tools_list(params)
            elif method == "tools/call":
                result = await self.handle_tools_call(params)
            else:
                return self.create_error_response(
                    METHOD_NOT_FOUND,
                    f"Method not found: {method}",
                    request_id
                )

            return {
                "jsonrpc": "2.0",
                "id": request_id,
                "result": result
            }

        except ValueError as e:
            return self.create_error_response(INVALID_PARAMS, str(e), request_id)
        except Exception:
            logger.exception(f"Error handling request: {method}")
            return self.create_error_response(INTERNAL_ERROR, "Internal error", request_id)
