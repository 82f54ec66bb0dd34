"""Utilities module."""

from .logger import setup_logger, call_context, set_call_context
from .ids import generate_id, generate_call_id

__all__ = [
    "setup_logger",
    "call_context",
    "set_call_context",
    "generate_id",
    "generate_call_id",
]
