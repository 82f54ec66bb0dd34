"""Tool and callback handlers for the Phone Assistant MCP server."""

from .calls import CallHandlers
from .callbacks import CallbackHandler
from .monitoring import MonitoringHandlers

__all__ = ["CallHandlers", "CallbackHandler", "MonitoringHandlers"]
