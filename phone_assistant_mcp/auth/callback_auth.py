"""
Authentication of callbacks posted by the phone assistant.

Callbacks carry the shared key in ``X-MCP-API-Key``. When ``MCP_ALLOWED_IPS``
is set, the client address must also be on the list.
"""

import hmac
import logging
from typing import Optional

from fastapi import Request

from phone_assistant_mcp.config import Settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-MCP-API-Key"


class CallbackAuthError(Exception):
    """Rejected callback; rendered as an ``ErrorResponse`` by the app."""

    def __init__(self, status_code: int, code: str, message: str, ip: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.ip = ip


def get_client_ip(request: Request) -> str:
    """Client address from ``X-Forwarded-For`` (first hop), ``X-Real-IP`` or the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host
    return "unknown"


def verify_callback(request: Request, settings: Settings) -> str:
    """
    Check the API key and IP allowlist of a callback request.

    Returns:
        The client IP

    Raises:
        CallbackAuthError: 401 ``MISSING_API_KEY``, 403 ``INVALID_API_KEY``
            or 403 ``FORBIDDEN_IP``
    """
    client_ip = get_client_ip(request)

    api_key = request.headers.get(API_KEY_HEADER)
    if not api_key:
        logger.warning(f"🚫 Callback without API key from {client_ip}")
        raise CallbackAuthError(401, "MISSING_API_KEY", "API key requerida")

    if not hmac.compare_digest(api_key, settings.mcp_callback_api_key):
        logger.warning(f"🚫 Invalid callback API key from {client_ip}")
        raise CallbackAuthError(403, "INVALID_API_KEY", "API key inválida")

    allowed_ips = settings.get_allowed_ips_list()
    if allowed_ips and client_ip not in allowed_ips:
        logger.warning(f"🚫 Callback from IP not allowed: {client_ip}")
        raise CallbackAuthError(403, "FORBIDDEN_IP", "IP no autorizada", ip=client_ip)

    return client_ip
