"""External API clients."""

from .phone_client import PhoneClient

__all__ = ["PhoneClient"]
