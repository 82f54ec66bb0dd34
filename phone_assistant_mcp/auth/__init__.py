"""Authentication for the MCP endpoint and phone assistant callbacks."""

from .bearer_validator import BearerTokenValidator
from .callback_auth import CallbackAuthError, get_client_ip, verify_callback

__all__ = ["BearerTokenValidator", "CallbackAuthError", "get_client_ip", "verify_callback"]
