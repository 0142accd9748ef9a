"""Gong API client.

Async client for the Gong REST API using Basic authentication with an
access key / access key secret pair.
"""

from typing import Any

import httpx
import structlog

from gong_connector.config import DEFAULT_API_BASE_URL, Settings
from gong_connector.errors import ConfigurationError, GongAPIError

logger = structlog.get_logger(__name__)


class GongClient:
    """Async client for the Gong REST API.

    Provides methods to fetch:
    - Calls matching a search filter (cursor paginated)
    - Call details and transcripts
    - Users

    Example:
        client = GongClient(access_key="...", access_key_secret="...")
        page = await client.search_calls(from_date_time="2025-01-01T00:00:00Z")
        print(page["records"]["totalRecords"])
    """

    def __init__(
        self,
        access_key: str | None,
        access_key_secret: str | None,
        *,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Gong client.

        Args:
            access_key: Gong API access key.
            access_key_secret: Gong API access key secret.
            base_url: Base URL for Gong API endpoints.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.access_key = access_key
        self.access_key_secret = access_key_secret
        self.base_url = (base_url or DEFAULT_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._logger = logger.bind(component="gong_client")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GongClient":
        """Create a client from application settings."""
        return cls(
            settings.GONG_ACCESS_KEY,
            settings.GONG_ACCESS_KEY_SECRET,
            base_url=settings.GONG_API_BASE_URL,
            timeout=settings.GONG_API_TIMEOUT,
        )

    @property
    def is_configured(self) -> bool:
        """Check if both credentials are configured."""
        return bool(self.access_key and self.access_key_secret)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                auth=httpx.BasicAuth(self.access_key or "", self.access_key_secret or ""),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated request to the Gong API.

        Args:
            endpoint: API endpoint path (e.g., "v2/calls").
            method: HTTP method.
            body: Optional JSON body.
            params: Optional query parameters; None values are dropped.

        Returns:
            Parsed JSON body, or None when the response is not JSON.

        Raises:
            ConfigurationError: If credentials are missing.
            GongAPIError: For non-2xx responses and transport errors.
        """
        if not self.is_configured:
            raise ConfigurationError("Gong credentials not configured")

        client = await self._get_client()
        url = f"{self.base_url}/{endpoint}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        self._logger.debug("gong_request", method=method, endpoint=endpoint, params=query)

        try:
            response = await client.request(
                method,
                url,
                params=query or None,
                json=body if body else None,
            )
        except httpx.RequestError as e:
            self._logger.error("gong_client_error", endpoint=endpoint, error=str(e))
            raise GongAPIError(
                status_code=0, method=method, endpoint=endpoint, body=str(e)
            ) from e

        if not response.is_success:
            self._logger.warning(
                "gong_error_response",
                endpoint=endpoint,
                status=response.status_code,
            )
            raise GongAPIError(
                status_code=response.status_code,
                method=method,
                endpoint=endpoint,
                reason=response.reason_phrase,
                body=response.text,
            )

        self._logger.debug("gong_response", endpoint=endpoint, status=response.status_code)

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            return response.json()
        return None

    async def validate_credentials(self) -> None:
        """Check the credentials against the users endpoint.

        Raises:
            ConfigurationError: If credentials are missing.
            GongAPIError: If Gong rejects them.
        """
        await self.request("v2/users", method="GET")

    async def search_calls(
        self,
        *,
        from_date_time: str | None = None,
        to_date_time: str | None = None,
        workspace_id: str | None = None,
        cursor: str | None = None,
    ) -> dict[str, Any]:
        """Search calls with optional date range and workspace filters.

        Args:
            from_date_time: Start of range (ISO 8601).
            to_date_time: End of range (ISO 8601).
            workspace_id: Restrict to one workspace.
            cursor: Cursor from a previous page.

        Returns:
            Raw response with ``calls`` and ``records`` (cursor, totals).
        """
        filter_: dict[str, Any] = {}
        if from_date_time:
            filter_["fromDateTime"] = from_date_time
        if to_date_time:
            filter_["toDateTime"] = to_date_time
        if workspace_id:
            filter_["workspaceIds"] = [workspace_id]

        body: dict[str, Any] = {"filter": filter_}
        if cursor:
            body["cursor"] = cursor

        return await self.request("v2/calls", method="POST", body=body) or {}

    async def get_call(self, call_id: str) -> dict[str, Any]:
        """Get full details for one call."""
        return await self.request(f"v2/calls/{call_id}", method="GET") or {}

    async def get_call_transcripts(self, call_ids: list[str]) -> dict[str, Any]:
        """Get transcripts for a list of calls."""
        return await self.request(
            "v2/calls/transcript",
            method="POST",
            body={"filter": {"callIds": call_ids}},
        ) or {}

    async def get_users(self, user_ids: list[str]) -> dict[str, Any]:
        """Get users by id."""
        return await self.request(
            "v2/users",
            method="GET",
            params={"ids": ",".join(user_ids)},
        ) or {}
