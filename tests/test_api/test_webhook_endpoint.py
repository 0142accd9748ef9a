"""Tests for the webhook ingress endpoint."""

import asyncio
import time
from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from gong_connector.api.app import create_app
from gong_connector.api.webhooks import is_webhook_path
from gong_connector.config import Settings
from gong_connector.errors import SubscriptionStoreError
from gong_connector.webhooks.router import (
    ERROR_INTERNAL,
    MESSAGE_NO_SUBSCRIBERS,
    MESSAGE_PROCESSED,
    MESSAGE_TEST_EVENT,
    MESSAGE_UNRECOGNIZED,
)
from gong_connector.webhooks.store import InMemorySubscriptionStore
from gong_connector.webhooks.transport import InProcessTransport

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemorySubscriptionStore:
    """Create empty in-memory store."""
    return InMemorySubscriptionStore()


@pytest.fixture
def client(store: InMemorySubscriptionStore) -> Iterator[TestClient]:
    """Create test client over the in-memory store."""
    app = create_app(Settings(ACK_TIMEOUT_SECONDS=2.0), store=store)
    with TestClient(app) as test_client:
        yield test_client


def gong_event(event_type: str = "call-created", workspace_id: str | None = "W1", **extra) -> dict:
    """Build a Gong webhook body."""
    call = {"id": "call-1", "title": "Discovery"}
    if workspace_id is not None:
        call["workspaceId"] = workspace_id
    return {
        "eventType": event_type,
        "eventId": "evt-1",
        "eventTime": "2025-01-01T10:00:00Z",
        "call": call,
        **extra,
    }


# ============================================================================
# Path Tests
# ============================================================================


class TestIsWebhookPath:
    """Tests for is_webhook_path."""

    def test_root_webhook(self):
        """Test the canonical path."""
        assert is_webhook_path("/webhook")
        assert is_webhook_path("/webhook/")

    def test_prefixed_webhook(self):
        """Test paths ending in /webhook are accepted."""
        assert is_webhook_path("/gong/webhook")

    def test_other_paths(self):
        """Test unrelated paths are rejected."""
        assert not is_webhook_path("/webhooks")
        assert not is_webhook_path("/webhook/extra")
        assert not is_webhook_path("/")


# ============================================================================
# Endpoint Tests
# ============================================================================


class TestWebhookEndpoint:
    """Tests for POST /webhook."""

    def test_no_subscribers(self, client: TestClient):
        """Test events nobody listens to are acknowledged."""
        response = client.post("/webhook", json=gong_event())

        assert response.status_code == 200
        assert response.json() == {"message": MESSAGE_NO_SUBSCRIBERS}

    def test_test_event(self, client: TestClient):
        """Test Gong's test deliveries are acknowledged without routing."""
        client.put("/subscriptions/call-created/block-a")

        response = client.post("/webhook", json=gong_event(isTest=True))

        assert response.status_code == 200
        assert response.json() == {"message": MESSAGE_TEST_EVENT}
        assert client.get("/subscriptions/call-created/block-a/events").json()["events"] == []

    def test_unrecognized_event_type(self, client: TestClient):
        """Test unknown event types are acknowledged with 200."""
        response = client.post("/webhook", json=gong_event("meeting-booked"))

        assert response.status_code == 200
        assert response.json() == {"message": MESSAGE_UNRECOGNIZED}

    def test_dispatch_and_collect(self, client: TestClient):
        """Test a routed event is emitted by the subscribed block only."""
        client.put("/subscriptions/call-created/block-a")
        client.put("/subscriptions/call-created/block-b", json={"workspace_id": "W1"})

        response = client.post("/webhook", json=gong_event(workspace_id="W2"))

        assert response.status_code == 200
        assert response.json() == {"message": MESSAGE_PROCESSED}

        events_a = client.get("/subscriptions/call-created/block-a/events").json()["events"]
        events_b = client.get("/subscriptions/call-created/block-b/events").json()["events"]
        assert events_a == [
            {
                "eventId": "evt-1",
                "eventTime": "2025-01-01T10:00:00Z",
                "call": {"id": "call-1", "title": "Discovery", "workspaceId": "W2"},
            }
        ]
        assert events_b == []

    def test_prefixed_path(self, client: TestClient):
        """Test webhooks behind a path prefix are accepted."""
        response = client.post("/gong/webhook", json=gong_event())
        assert response.status_code == 200

    def test_invalid_json(self, client: TestClient):
        """Test unparseable bodies answer 500."""
        response = client.post(
            "/webhook",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": ERROR_INTERNAL}

    def test_missing_event_type(self, client: TestClient):
        """Test bodies without eventType answer 500."""
        response = client.post("/webhook", json={"eventId": "evt-1"})

        assert response.status_code == 500
        assert response.json() == {"error": ERROR_INTERNAL}

    def test_store_failure(self):
        """Test store errors answer 500 instead of raising."""
        store = AsyncMock()
        store.get.side_effect = SubscriptionStoreError(
            "down", key="webhook:subscription:call-created", operation="get"
        )
        app = create_app(Settings(), store=store)

        with TestClient(app) as client:
            response = client.post("/webhook", json=gong_event())

        assert response.status_code == 500
        assert response.json() == {"error": ERROR_INTERNAL}

    def test_slow_store_times_out(self):
        """Test a routing pass slower than the ack timeout answers 500 promptly."""

        async def slow_read(category) -> None:  # noqa: ARG001
            await asyncio.sleep(1.5)

        transport = InProcessTransport()
        app = create_app(
            Settings(ACK_TIMEOUT_SECONDS=0.1),
            store=InMemorySubscriptionStore(on_read=slow_read),
            transport=transport,
        )

        with TestClient(app) as client:
            started = time.monotonic()
            response = client.post("/webhook", json=gong_event())
            elapsed = time.monotonic() - started

        assert response.status_code == 500
        assert response.json() == {"error": ERROR_INTERNAL}
        assert elapsed < 1.0
        assert transport._pending_acks == {}

    def test_null_is_test_is_routed(self, client: TestClient):
        """Test a null isTest is routed as a live event."""
        client.put("/subscriptions/call-created/block-a")

        response = client.post("/webhook", json=gong_event(isTest=None))

        assert response.status_code == 200
        assert response.json() == {"message": MESSAGE_PROCESSED}

    def test_consecutive_requests(self, client: TestClient, store: InMemorySubscriptionStore):
        """Test every request is answered independently."""
        client.put("/subscriptions/call-analyzed/block-a")

        for _ in range(3):
            response = client.post("/webhook", json=gong_event("call-analyzed"))
            assert response.status_code == 200

        events = client.get("/subscriptions/call-analyzed/block-a/events").json()["events"]
        assert len(events) == 3
        assert store.writes == 1


class TestUnknownEndpoints:
    """Tests for the 404 fallback."""

    def test_get_webhook(self, client: TestClient):
        """Test only POST is accepted on the webhook path."""
        response = client.get("/webhook")

        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}

    def test_unknown_path(self, client: TestClient):
        """Test unrelated paths answer 404."""
        response = client.post("/api/other", json=gong_event())

        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}

    def test_unknown_path_skips_store(self, client: TestClient, store: InMemorySubscriptionStore):
        """Test a 404 does not touch the store."""
        client.post("/api/other", json=gong_event())

        assert store.reads == 0
