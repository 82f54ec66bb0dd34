"""
Configuration management for the Phone Assistant MCP server.

Uses Pydantic BaseSettings for type-safe configuration loading from environment variables.
"""

import json
import logging
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from phone_assistant_mcp.utils.exceptions import ConfigurationException


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Phone assistant API
    phone_api_url: str = Field(default="http://192.168.4.44:8000", description="Phone assistant API base URL")
    phone_api_key: str = Field(default="phone-secret-key", description="Phone assistant API key")
    phone_timeout: int = Field(default=30000, description="HTTP timeout in milliseconds")
    phone_retries: int = Field(default=3, description="Max attempts for idempotent requests")
    phone_retry_base_delay: float = Field(default=1.0, description="Base delay (s) for exponential backoff")

    # Callback endpoints advertised to the phone assistant
    mcp_callback_url: str = Field(default="http://localhost:3000", description="Public base URL of this server")
    mcp_callback_api_key: str = Field(default="mcp-default-key", description="X-MCP-API-Key expected on callbacks")
    mcp_allowed_ips: str = Field(default="", description="Comma-separated IPs allowed to post callbacks")

    # MCP server
    bearer_tokens: str = Field(..., description="MCP bearer tokens as JSON array or comma-separated list")
    mcp_host: str = Field(default="0.0.0.0", description="Server host")
    mcp_port: int = Field(default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: text or json")
    log_dir: Optional[str] = Field(default=None, description="Directory for the rotating log file")

    # Ledger retention
    ledger_max_logs: int = Field(default=1000, description="Max system log entries kept")
    ledger_max_history: int = Field(default=500, description="Max conversation results kept")
    ledger_max_age_seconds: int = Field(default=24 * 60 * 60, description="Age after which finished calls are swept")
    ledger_sweep_interval_seconds: int = Field(default=60 * 60, description="Sweep interval")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ("text", "json"):
            raise ValueError("log_format must be either 'text' or 'json'")
        return v_lower

    @field_validator(
        "phone_timeout",
        "phone_retries",
        "ledger_max_logs",
        "ledger_max_history",
        "ledger_max_age_seconds",
        "ledger_sweep_interval_seconds",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    def get_bearer_tokens_list(self) -> List[str]:
        """Parse bearer tokens from JSON array or comma-separated list."""
        try:
            tokens = json.loads(self.bearer_tokens)
            if isinstance(tokens, list):
                return [str(t) for t in tokens]
        except (json.JSONDecodeError, ValueError):
            pass

        return [t.strip() for t in self.bearer_tokens.split(',') if t.strip()]

    def get_allowed_ips_list(self) -> List[str]:
        return [ip.strip() for ip in self.mcp_allowed_ips.split(',') if ip.strip()]


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance

    Raises:
        ConfigurationException: If required configuration is missing or invalid
    """
    global _settings

    if _settings is None:
        try:
            _settings = Settings()
        except Exception as e:
            raise ConfigurationException(f"Configuration error: {str(e)}") from e

        logger = logging.getLogger(__name__)
        logger.info("Configuration loaded successfully")
        logger.info(f"Phone API URL: {_settings.phone_api_url}")
        logger.info(f"Phone API key: {'***' if _settings.phone_api_key else 'not set'}")
        logger.info(f"Callback URL: {_settings.mcp_callback_url}")
        logger.info(f"Bearer tokens: {len(_settings.get_bearer_tokens_list())} configured")
        logger.info(f"Log Level: {_settings.log_level}")

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        New Settings instance
    """
    global _settings
    _settings = None
    return get_settings()
