"""
Custom exception classes for the Phone Assistant MCP server.
"""

from typing import Any, Optional


class PhoneAssistantException(Exception):
    """Base exception for all phone assistant errors."""
    pass


class DuplicateCallIdError(PhoneAssistantException):
    """Raised when a call id is registered twice."""

    def __init__(self, call_id: str):
        super().__init__(f"Call id already registered: {call_id}")
        self.call_id = call_id


class PhoneAssistantAPIError(PhoneAssistantException):
    """Exception raised when the external phone assistant API fails."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: Optional[int] = None,
        details: Any = None
    ):
        """
        Initialize API exception.

        Args:
            message: Error message
            code: Error code (HTTP_<status>, NO_RESPONSE, CALL_FAILED, ...)
            status_code: HTTP status code from the API, if any
            details: Response body or underlying error detail
        """
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.details = details


class CallbackProcessingError(PhoneAssistantException):
    """Raised while turning a conversation result into a user response."""
    pass


class ConfigurationException(PhoneAssistantException):
    """Exception raised for configuration errors."""
    pass
