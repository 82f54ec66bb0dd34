"""
Logging configuration for the Phone Assistant MCP server.

Every record carries the id of the call being handled, taken from
``call_context``. Records mirrored from the event log also carry the
``event_id`` of the ledger entry.
"""

import os
import sys
import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from logging.handlers import RotatingFileHandler
from contextvars import ContextVar

LOG_FILE_NAME = "phone-assistant-mcp.log"

# Call id of the request or callback being handled
call_context: ContextVar[str] = ContextVar('call_id', default='N/A')

# Extra attributes attached by EventLog when mirroring ledger events
_EVENT_ATTRS = ("event_id", "event_call_id")


class CallFilter(logging.Filter):
    """Add call_id to all log records from context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.call_id = call_context.get()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "call_id": getattr(record, "call_id", call_context.get()),
            "message": record.getMessage(),
        }

        for attr in _EVENT_ATTRS:
            value = getattr(record, attr, None)
            if value is not None:
                log_obj[attr] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


class StandardFormatter(logging.Formatter):
    """Human-readable text with the call id."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - [%(call_id)s] - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def setup_logger(
    level: str = "INFO",
    log_format: str = "text",
    log_dir: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger for the server.

    Console output always goes to stdout. When ``log_dir`` is given, a
    rotating ``phone-assistant-mcp.log`` is written there as well.

    Args:
        level: Log level name
        log_format: "json" or "text"
        log_dir: Directory for the rotating log file

    Returns:
        The root logger
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Already configured, don't add duplicate handlers
    if any(isinstance(h.formatter, (JSONFormatter, StandardFormatter)) for h in logger.handlers):
        return logger

    formatter = JSONFormatter() if log_format.lower() == "json" else StandardFormatter()
    call_filter = CallFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.addFilter(call_filter)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, LOG_FILE_NAME),
                maxBytes=2 * 1024 * 1024,  # 2MB
                backupCount=10
            )
            file_handler.addFilter(call_filter)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to setup file logging in {log_dir}: {e}. Logging to console only.")

    return logger


def set_call_context(call_id: Optional[str]) -> None:
    """Bind a call id to the current async context for log records."""
    call_context.set(call_id or 'N/A')
