"""Installation readiness check.

The app is ready only when both Gong credentials are present and Gong
accepts them. Until then no event processing should be relied on.
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, Field

from gong_connector.blocks.base import BlockStatus
from gong_connector.client import GongClient
from gong_connector.errors import GongConnectorError

logger = structlog.get_logger(__name__)

INSTALLATION_INSTRUCTIONS = """\
Gong integration provides read-only access to call data, transcripts, and user information.

To install:
1. Obtain your Gong API credentials from Company Settings > Ecosystem > API > API keys
2. Set GONG_ACCESS_KEY and GONG_ACCESS_KEY_SECRET
3. (Optional) Configure the webhook URL in Gong to receive real-time call events: \
use <base URL>/webhook
4. Check GET /health/ready"""


class InstallationStatus(BaseModel):
    """Readiness of the installation."""

    status: BlockStatus
    description: str | None = None
    checked_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_ready(self) -> bool:
        return self.status == BlockStatus.READY

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "description": self.description,
            "checked_at": self.checked_at.isoformat(),
        }


async def check_installation(client: GongClient) -> InstallationStatus:
    """Validate credentials by calling the Gong users endpoint.

    Args:
        client: Gong client built from the app configuration.

    Returns:
        READY, or FAILED with "Missing credentials" / "Auth failed".
    """
    if not client.is_configured:
        logger.warning("gong_credentials_missing")
        return InstallationStatus(status=BlockStatus.FAILED, description="Missing credentials")

    try:
        await client.validate_credentials()
    except GongConnectorError as e:
        logger.error("gong_authentication_failed", error=e.message)
        return InstallationStatus(status=BlockStatus.FAILED, description="Auth failed")

    return InstallationStatus(status=BlockStatus.READY)
