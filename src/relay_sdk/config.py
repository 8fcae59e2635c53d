"""
Configuration management for Relay SDK.

This module provides the RelaySettings class that holds the defaults used by
connectors and senders, with support for environment variables, .env files and
sensible defaults.

Environment variables are automatically loaded with the RELAY_ prefix.
Example: RELAY_SENDER=requests
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class RelaySettings(BaseSettings):
    """
    Configuration settings for Relay SDK with environment variable support.

    This class automatically loads configuration from:
    - Environment variables (with RELAY_ prefix)
    - .env files
    - Default values for optional settings

    Example:
        # From environment
        export RELAY_SENDER=aiohttp
        export RELAY_TIMEOUT=60.0

        # In code
        settings = RelaySettings()
        connector = MyConnector(settings=settings)
    """

    sender: str = "httpx"  # default, can be 'aiohttp' or 'requests'
    timeout: float = Field(default=30.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    follow_redirects: bool = False
    retry_attempts: int = Field(default=1, ge=1, description="1 disables retries")
    retry_backoff: float = Field(default=0.5, ge=0)

    model_config = SettingsConfigDict(env_prefix="RELAY_", env_file=".env", extra="ignore")
