"""Tests for block catalogue, block execution and health endpoints."""

from collections.abc import Callable, Iterator
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from gong_connector.api.app import create_app
from gong_connector.client import GongClient
from gong_connector.config import Settings
from gong_connector.webhooks.store import InMemorySubscriptionStore

# ============================================================================
# Fixtures
# ============================================================================


def gong_response(status_code: int = 200, **payload) -> Callable[[httpx.Request], httpx.Response]:
    """Build a mock Gong handler answering every request the same way."""

    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        if status_code >= 400:
            return httpx.Response(status_code, text="rejected")
        return httpx.Response(status_code, json=payload)

    return handler


def make_test_client(handler=None, *, configured: bool = True) -> TestClient:
    """Create a test client whose Gong client talks to a mock transport."""
    gong_client = GongClient(
        "key" if configured else None,
        "secret" if configured else None,
        transport=httpx.MockTransport(handler or gong_response()),
    )
    app = create_app(Settings(), store=InMemorySubscriptionStore(), gong_client=gong_client)
    return TestClient(app)


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Create test client with a configured Gong client."""
    with make_test_client(gong_response(users=[{"id": "u1", "emailAddress": "ada@example.com"}])) as c:
        yield c


# ============================================================================
# Health Tests
# ============================================================================


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client: TestClient):
        """Test liveness check."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_ready(self, client: TestClient):
        """Test readiness with accepted credentials."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_credentials(self):
        """Test readiness reports missing credentials."""
        with make_test_client(configured=False) as client:
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "failed"
        assert response.json()["description"] == "Missing credentials"

    def test_not_ready_when_rejected(self):
        """Test readiness reports rejected credentials."""
        with make_test_client(gong_response(401)) as client:
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["description"] == "Auth failed"

    def test_shutdown_closes_store(self):
        """Test the store is closed when the app shuts down."""
        store = AsyncMock()
        app = create_app(Settings(), store=store)

        with TestClient(app):
            store.aclose.assert_not_awaited()

        store.aclose.assert_awaited_once()


# ============================================================================
# Block Catalogue Tests
# ============================================================================


class TestListBlocks:
    """Tests for GET /blocks."""

    def test_lists_all_blocks(self, client: TestClient):
        """Test every action and subscription block is described."""
        response = client.get("/blocks")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {
            "searchCalls",
            "getCallDetails",
            "getCallTranscript",
            "getUserDetails",
            "newCallSubscription",
            "transcriptReadySubscription",
            "callAnalyzedSubscription",
        }
        assert data["getUserDetails"]["category"] == "Users"
        assert data["newCallSubscription"]["category"] == "Webhooks"


# ============================================================================
# Block Execution Tests
# ============================================================================


class TestRunBlock:
    """Tests for POST /blocks/{block_key}."""

    def test_run_block(self, client: TestClient):
        """Test a block runs and returns its event."""
        response = client.post("/blocks/getUserDetails", json={"userId": "u1"})

        assert response.status_code == 200
        assert response.json() == {
            "event": {"user": {"id": "u1", "emailAddress": "ada@example.com"}}
        }

    def test_invalid_input(self, client: TestClient):
        """Test invalid block input answers 422."""
        response = client.post("/blocks/getCallDetails", json={})

        assert response.status_code == 422
        assert "Get Call Details" in response.json()["error"]

    def test_not_found(self):
        """Test an empty Gong answer maps to 404."""
        with make_test_client(gong_response(users=[])) as client:
            response = client.post("/blocks/getUserDetails", json={"userId": "u9"})

        assert response.status_code == 404
        assert response.json() == {"error": "No user found with ID u9"}

    def test_gong_error(self):
        """Test Gong API failures map to 502."""
        with make_test_client(gong_response(500)) as client:
            response = client.post("/blocks/getCallDetails", json={"callId": "c1"})

        assert response.status_code == 502
        assert "v2/calls/c1" in response.json()["error"]

    def test_missing_credentials(self):
        """Test running without credentials answers 503."""
        with make_test_client(configured=False) as client:
            response = client.post("/blocks/searchCalls", json={})

        assert response.status_code == 503

    def test_unknown_block(self, client: TestClient):
        """Test unknown block keys answer 404."""
        response = client.post("/blocks/deleteCall", json={})

        assert response.status_code == 404
        assert response.json() == {"error": "Action block deleteCall not found"}

    def test_subscription_block_not_runnable(self, client: TestClient):
        """Test subscription blocks cannot be run as actions."""
        response = client.post("/blocks/newCallSubscription", json={})

        assert response.status_code == 404
