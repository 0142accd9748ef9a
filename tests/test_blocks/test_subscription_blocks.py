"""Tests for webhook subscription blocks."""

import pytest

from gong_connector.blocks import BLOCKS
from gong_connector.blocks.base import BlockStatus
from gong_connector.blocks.subscriptions import (
    SUBSCRIPTION_BLOCKS,
    call_analyzed_subscription,
    new_call_subscription,
)
from gong_connector.webhooks.events import EventCategory
from gong_connector.webhooks.registry import SubscriptionRegistry
from gong_connector.webhooks.store import InMemorySubscriptionStore, SubscriberRecord
from gong_connector.webhooks.transport import MESSAGE_TYPE

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def registry() -> SubscriptionRegistry:
    """Create registry over an empty in-memory store."""
    return SubscriptionRegistry(InMemorySubscriptionStore())


def webhook_message(event_type: str = "call-created") -> dict:
    """Build a routed webhook message."""
    return {
        "type": MESSAGE_TYPE,
        "payload": {
            "eventType": event_type,
            "eventId": "evt-1",
            "eventTime": "2025-01-01T10:00:00Z",
            "isTest": False,
            "call": {"id": "call-1", "workspaceId": "W1", "title": "Demo"},
        },
    }


# ============================================================================
# Lifecycle Tests
# ============================================================================


class TestSubscriptionLifecycle:
    """Tests for activation and drain."""

    @pytest.mark.asyncio
    async def test_activate_registers(self, registry: SubscriptionRegistry) -> None:
        """Test activation registers the block with its filter."""
        status = await new_call_subscription.on_activate(registry, "block-1", "W1")

        assert status is BlockStatus.READY
        assert await registry.list_subscribers(EventCategory.CALL_CREATED) == [
            SubscriberRecord(subscriber_id="block-1", attribute_filter="W1")
        ]

    @pytest.mark.asyncio
    async def test_activate_twice(self, registry: SubscriptionRegistry) -> None:
        """Test replayed activation does not duplicate the block."""
        await new_call_subscription.on_activate(registry, "block-1")
        await new_call_subscription.on_activate(registry, "block-1")

        assert len(await registry.list_subscribers(EventCategory.CALL_CREATED)) == 1

    @pytest.mark.asyncio
    async def test_deactivate_unregisters(self, registry: SubscriptionRegistry) -> None:
        """Test drain removes the block."""
        await new_call_subscription.on_activate(registry, "block-1")

        status = await new_call_subscription.on_deactivate(registry, "block-1")

        assert status is BlockStatus.DRAINED
        assert await registry.list_subscribers(EventCategory.CALL_CREATED) == []

    @pytest.mark.asyncio
    async def test_deactivate_never_activated(self, registry: SubscriptionRegistry) -> None:
        """Test draining an unknown block still reports drained."""
        status = await call_analyzed_subscription.on_deactivate(registry, "block-9")
        assert status is BlockStatus.DRAINED


# ============================================================================
# Message Tests
# ============================================================================


class TestOnInternalMessage:
    """Tests for SubscriptionBlock.on_internal_message."""

    def test_emits_event(self) -> None:
        """Test matching messages are re-emitted."""
        event = new_call_subscription.on_internal_message(webhook_message())

        assert event == {
            "eventId": "evt-1",
            "eventTime": "2025-01-01T10:00:00Z",
            "call": {"id": "call-1", "workspaceId": "W1", "title": "Demo"},
        }

    def test_other_category_ignored(self) -> None:
        """Test messages for another category are dropped."""
        assert call_analyzed_subscription.on_internal_message(webhook_message()) is None

    def test_other_message_type_ignored(self) -> None:
        """Test non-webhook messages are dropped."""
        message = webhook_message()
        message["type"] = "something_else"
        assert new_call_subscription.on_internal_message(message) is None

    def test_non_dict_ignored(self) -> None:
        """Test malformed bodies are dropped."""
        assert new_call_subscription.on_internal_message("oops") is None  # type: ignore[arg-type]


# ============================================================================
# Catalogue Tests
# ============================================================================


class TestSubscriptionCatalogue:
    """Tests for subscription block registration."""

    def test_one_block_per_category(self) -> None:
        """Test every category has a subscription block."""
        assert set(SUBSCRIPTION_BLOCKS) == set(EventCategory)

    def test_exposed_by_block_key(self) -> None:
        """Test subscription blocks appear under their block keys."""
        assert BLOCKS["newCallSubscription"] is new_call_subscription
        assert BLOCKS["callAnalyzedSubscription"] is call_analyzed_subscription
        assert BLOCKS["transcriptReadySubscription"].event_category is EventCategory.CALL_TRANSCRIPT_READY

    def test_describe(self) -> None:
        """Test metadata exposes the workspace option and output schema."""
        description = new_call_subscription.describe()

        assert description["category"] == "Webhooks"
        assert description["config"]["workspaceId"]["required"] is False
        assert description["output"]["type"]["required"] == ["eventId", "eventTime", "call"]
