"""Identifier generation for calls and log entries."""

import secrets
import time

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _random_base36(length: int = 13) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_id() -> str:
    """Time-ordered unique id: ``<unix_ms>_<base36 random>``."""
    return f"{int(time.time() * 1000)}_{_random_base36()}"


def generate_call_id() -> str:
    """Fallback call id used when the phone API omits one."""
    return f"call_{generate_id()}"
