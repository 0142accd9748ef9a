"""Webhook subscription blocks.

Each block listens to one Gong event category. Activating a block registers
its id with the subscription registry (optionally filtered to one
workspace); draining it unregisters. The router then sends it messages of
type ``gong_webhook``, from which the block re-emits ``eventId``,
``eventTime`` and ``call`` when the event belongs to its category.
"""

from typing import Any

import structlog

from gong_connector.blocks.base import BlockStatus
from gong_connector.webhooks.events import EventCategory, InboundEvent, get_catalog_entry
from gong_connector.webhooks.registry import SubscriptionRegistry
from gong_connector.webhooks.transport import MESSAGE_TYPE

logger = structlog.get_logger(__name__)


class SubscriptionBlock:
    """A block that emits Gong webhook events of one category."""

    #: Grouping shown by the host
    category = "Webhooks"

    def __init__(self, event_category: EventCategory, name: str, description: str) -> None:
        """Initialize the block.

        Args:
            event_category: Category this block subscribes to.
            name: Display name of the block.
            description: What the block emits and when.
        """
        self.event_category = event_category
        self.name = name
        self.description = description
        self._logger = logger.bind(block=name, event_category=event_category.value)

    async def on_activate(
        self,
        registry: SubscriptionRegistry,
        block_id: str,
        workspace_id: str | None = None,
    ) -> BlockStatus:
        """Register the block for its category.

        Errors from the registry propagate so that activation fails.

        Args:
            registry: Subscription registry.
            block_id: Host-assigned id of this block instance.
            workspace_id: Only receive events for this workspace.

        Returns:
            BlockStatus.READY once registered.
        """
        await registry.register(self.event_category, block_id, workspace_id)
        self._logger.info("subscription_block_activated", block_id=block_id)
        return BlockStatus.READY

    async def on_deactivate(self, registry: SubscriptionRegistry, block_id: str) -> BlockStatus:
        """Unregister the block from its category.

        Returns:
            BlockStatus.DRAINED once unregistered.
        """
        await registry.unregister(self.event_category, block_id)
        self._logger.info("subscription_block_drained", block_id=block_id)
        return BlockStatus.DRAINED

    def on_internal_message(self, body: dict[str, Any]) -> dict[str, Any] | None:
        """Turn a routed webhook message into the block's output event.

        Args:
            body: Message body as sent by the transport.

        Returns:
            Output event, or None when the message is not for this block.
        """
        if not isinstance(body, dict) or body.get("type") != MESSAGE_TYPE:
            return None

        event = InboundEvent.model_validate(body.get("payload") or {})
        if event.category is not self.event_category:
            return None

        return {
            "eventId": event.event_id,
            "eventTime": event.event_time,
            "call": event.call.model_dump(by_alias=True, exclude_none=True) if event.call else None,
        }

    def describe(self) -> dict[str, Any]:
        """Block metadata for the host."""
        entry = get_catalog_entry(self.event_category)
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "config": {
                "workspaceId": {
                    "name": "Workspace ID",
                    "description": "Only emit events for calls from this workspace (optional)",
                    "type": "string",
                    "required": False,
                },
            },
            "output": {
                "name": entry.name,
                "description": entry.description,
                "type": entry.output_schema(),
            },
        }


new_call_subscription = SubscriptionBlock(
    EventCategory.CALL_CREATED,
    name="New Call Subscription",
    description=(
        "Receives webhook events when a new call is recorded/uploaded in Gong. Emits events "
        "as soon as Gong registers a new call, before processing is complete."
    ),
)

transcript_ready_subscription = SubscriptionBlock(
    EventCategory.CALL_TRANSCRIPT_READY,
    name="Transcript Ready Subscription",
    description=(
        "Receives webhook events when a call's transcript has been processed and is ready "
        "for retrieval. This typically fires a few minutes after a call is recorded."
    ),
)

call_analyzed_subscription = SubscriptionBlock(
    EventCategory.CALL_ANALYZED,
    name="Call Analyzed Subscription",
    description=(
        "Receives webhook events when a call has been fully analyzed by Gong (topics "
        "extracted, questions identified, action items detected, sentiment analyzed, etc.). "
        "This is the final processing stage."
    ),
)

SUBSCRIPTION_BLOCKS: dict[EventCategory, SubscriptionBlock] = {
    block.event_category: block
    for block in (
        new_call_subscription,
        transcript_ready_subscription,
        call_analyzed_subscription,
    )
}
