"""Fan-out of inbound Gong webhooks to subscribed blocks.

For each inbound event the router loads the subscription list of the
event's category, keeps the subscribers whose workspace filter admits the
event, hands one delivery for all of them to the transport and then
acknowledges the originator. Every event is acknowledged exactly once,
whatever happens, and a failure never escapes ``route``.
"""

from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field

from gong_connector.webhooks.events import EventCategory, InboundEvent
from gong_connector.webhooks.store import SubscriberRecord, SubscriptionStore
from gong_connector.webhooks.transport import (
    DeliveryTransport,
    DispatchReceipt,
    OutboundDelivery,
)

logger = structlog.get_logger(__name__)

MESSAGE_TEST_EVENT = "Test webhook received"
MESSAGE_UNRECOGNIZED = "Unrecognized event type ignored"
MESSAGE_NO_SUBSCRIBERS = "No subscriptions for this event type"
MESSAGE_PROCESSED = "Webhook processed"
ERROR_INTERNAL = "Internal error processing webhook"


class RouteStatus(str, Enum):
    """How a routing pass ended."""

    TEST_EVENT = "test_event"
    UNRECOGNIZED = "unrecognized"
    NO_SUBSCRIBERS = "no_subscribers"
    DISPATCHED = "dispatched"
    FAILED = "failed"


class RouteOutcome(BaseModel):
    """Result of routing one inbound event."""

    status: RouteStatus
    status_code: int = 200
    message: str
    matched_subscribers: list[str] = Field(default_factory=list)
    receipt: DispatchReceipt | None = Field(
        default=None,
        description="Present when a delivery was accepted; not a processing confirmation",
    )


def matches_filter(record: SubscriberRecord, workspace_id: str | None) -> bool:
    """Check whether a subscriber's workspace filter admits an event.

    The filter only rejects when both sides are known and differ: a
    subscriber without a filter gets everything, and an event without a
    workspace reaches filtered subscribers too.

    Args:
        record: Subscriber record.
        workspace_id: Workspace carried by the event, if any.

    Returns:
        True if the event should be delivered to the subscriber.
    """
    if record.attribute_filter and workspace_id:
        return record.attribute_filter == workspace_id
    return True


def select_subscribers(
    records: list[SubscriberRecord], workspace_id: str | None
) -> list[str]:
    """Subscriber ids admitted by their filters, in list order."""
    return [r.subscriber_id for r in records if matches_filter(r, workspace_id)]


class WebhookRouter:
    """Routes inbound webhook events to registered subscribers."""

    def __init__(self, store: SubscriptionStore, transport: DeliveryTransport) -> None:
        """Initialize the router.

        Args:
            store: Store holding the subscription lists.
            transport: Transport used to dispatch and acknowledge.
        """
        self._store = store
        self._transport = transport
        self._logger = logger.bind(component="webhook_router")

    async def route(self, event: InboundEvent, request_id: str) -> RouteOutcome:
        """Route one inbound event and acknowledge its originator.

        Args:
            event: Parsed inbound event.
            request_id: Handle used to acknowledge the originator.

        Returns:
            Outcome of the routing pass.
        """
        log = self._logger.bind(
            request_id=request_id,
            event_id=event.event_id,
            event_type=event.event_type,
        )

        try:
            outcome = await self._route(event, log)
        except Exception as e:
            log.error("webhook_routing_failed", error=str(e), exc_info=True)
            outcome = RouteOutcome(
                status=RouteStatus.FAILED,
                status_code=500,
                message=ERROR_INTERNAL,
            )
            await self._acknowledge(request_id, 500, {"error": ERROR_INTERNAL}, log)
            return outcome

        await self._acknowledge(
            request_id, outcome.status_code, {"message": outcome.message}, log
        )
        return outcome

    async def _acknowledge(
        self,
        request_id: str,
        status_code: int,
        body: dict[str, Any],
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        try:
            await self._transport.acknowledge(request_id, status_code, body)
        except Exception as e:
            # Originator already answered or timed out.
            log.error("webhook_acknowledgment_failed", status_code=status_code, error=str(e))

    async def _route(self, event: InboundEvent, log: structlog.stdlib.BoundLogger) -> RouteOutcome:
        if event.is_test:
            log.info("test_webhook_received")
            return RouteOutcome(status=RouteStatus.TEST_EVENT, message=MESSAGE_TEST_EVENT)

        category = event.category
        if category is None:
            log.info("webhook_category_unrecognized")
            return RouteOutcome(status=RouteStatus.UNRECOGNIZED, message=MESSAGE_UNRECOGNIZED)

        records = await self._store.get(category) or []
        subscriber_ids = select_subscribers(records, event.workspace_id)

        if not subscriber_ids:
            log.debug(
                "no_subscribers_matched",
                category=category.value,
                registered=len(records),
            )
            return RouteOutcome(status=RouteStatus.NO_SUBSCRIBERS, message=MESSAGE_NO_SUBSCRIBERS)

        receipt = await self._transport.dispatch(
            self._build_delivery(category, event, subscriber_ids)
        )

        log.info(
            "webhook_dispatched",
            category=category.value,
            delivery_id=receipt.delivery_id,
            subscriber_count=len(subscriber_ids),
        )
        return RouteOutcome(
            status=RouteStatus.DISPATCHED,
            message=MESSAGE_PROCESSED,
            matched_subscribers=subscriber_ids,
            receipt=receipt,
        )

    @staticmethod
    def _build_delivery(
        category: EventCategory, event: InboundEvent, subscriber_ids: list[str]
    ) -> OutboundDelivery:
        return OutboundDelivery(
            subscriber_ids=subscriber_ids,
            category=category,
            event_id=event.event_id,
            event_time=event.event_time,
            payload=event.to_payload(),
        )
