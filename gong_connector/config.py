"""Application configuration settings.

This module provides centralized configuration management using environment
variables with sensible defaults.
"""

import os
from dataclasses import dataclass

DEFAULT_API_BASE_URL = "https://api.gong.io"


def _get_bool_env(name: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable.

    Args:
        name: Environment variable name.
        default: Default value if not set.

    Returns:
        Boolean value from environment.
    """
    value = os.getenv(name, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def _get_float_env(name: str, default: float) -> float:
    """Get a float value from environment variable, falling back on bad input."""
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        GONG_ACCESS_KEY: Gong API access key.
        GONG_ACCESS_KEY_SECRET: Gong API access key secret.
        GONG_API_BASE_URL: Base URL for Gong API endpoints.
        GONG_API_TIMEOUT: Gong API request timeout in seconds.
        REDIS_URL: Redis URL for the subscription store (unset = in-memory).
        SERIALIZE_SUBSCRIPTION_MUTATIONS: Lock registry mutations per category.
        ACK_TIMEOUT_SECONDS: How long the webhook endpoint waits for the router.
        LOG_LEVEL: Logging level.
        LOG_JSON: Render logs as JSON instead of console output.
    """

    # Gong credentials
    GONG_ACCESS_KEY: str | None = None
    GONG_ACCESS_KEY_SECRET: str | None = None
    GONG_API_BASE_URL: str = DEFAULT_API_BASE_URL
    GONG_API_TIMEOUT: float = 30.0

    # Subscription store
    REDIS_URL: str | None = None
    SERIALIZE_SUBSCRIPTION_MUTATIONS: bool = False

    # Webhook ingress
    ACK_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Returns:
            Settings instance populated from environment.
        """
        return cls(
            GONG_ACCESS_KEY=os.getenv("GONG_ACCESS_KEY"),
            GONG_ACCESS_KEY_SECRET=os.getenv("GONG_ACCESS_KEY_SECRET"),
            GONG_API_BASE_URL=os.getenv("GONG_API_BASE_URL") or DEFAULT_API_BASE_URL,
            GONG_API_TIMEOUT=_get_float_env("GONG_API_TIMEOUT", 30.0),
            REDIS_URL=os.getenv("REDIS_URL") or None,
            SERIALIZE_SUBSCRIPTION_MUTATIONS=_get_bool_env(
                "SERIALIZE_SUBSCRIPTION_MUTATIONS", default=False
            ),
            ACK_TIMEOUT_SECONDS=_get_float_env("ACK_TIMEOUT_SECONDS", 10.0),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
            LOG_JSON=_get_bool_env("LOG_JSON", default=False),
        )
