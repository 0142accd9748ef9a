"""Error hierarchy for the Gong connector.

Exception Hierarchy:
    GongConnectorError (base)
    ├── ConfigurationError - Missing or rejected credentials
    ├── SubscriptionStoreError - Subscription store backend failures
    ├── DispatchError - Delivery transport failures
    ├── AcknowledgmentError - Acknowledgment contract violations
    ├── GongAPIError - Non-2xx or unreachable Gong API
    └── NotFoundError - Gong returned no record for the requested id
"""

from typing import Any


class GongConnectorError(Exception):
    """Base exception for all connector errors.

    Attributes:
        message: Human-readable error message.
        details: Additional error details.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(GongConnectorError):
    """Credentials are missing or were rejected by Gong."""

    pass


class SubscriptionStoreError(GongConnectorError):
    """Reading or writing a subscription list failed.

    Attributes:
        key: Store key involved in the failed operation.
        operation: "get" or "set".
    """

    def __init__(
        self,
        message: str,
        *,
        key: str,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.key = key
        self.operation = operation

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        base = super().to_dict()
        base.update({"key": self.key, "operation": self.operation})
        return base


class DispatchError(GongConnectorError):
    """The delivery transport refused a dispatch."""

    pass


class AcknowledgmentError(GongConnectorError):
    """An inbound request was acknowledged twice, or was never expected."""

    def __init__(self, message: str, *, request_id: str) -> None:
        super().__init__(message, details={"request_id": request_id})
        self.request_id = request_id


class GongAPIError(GongConnectorError):
    """Raised for non-2xx Gong API responses and transport failures.

    Attributes:
        status_code: HTTP status code (0 when the request never completed).
        method: HTTP method used.
        endpoint: API endpoint path.
        body: Response body text.
    """

    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        endpoint: str,
        reason: str = "",
        body: str = "",
    ) -> None:
        message = f"Gong API error ({method} {endpoint}): {status_code} {reason} - {body}"
        super().__init__(message, details={"status_code": status_code, "body": body})
        self.status_code = status_code
        self.method = method
        self.endpoint = endpoint
        self.body = body


class NotFoundError(GongConnectorError):
    """Gong answered successfully but without the requested record."""

    pass
