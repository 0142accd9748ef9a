"""Delivery transport between the router, subscribers and the webhook caller.

The transport has two jobs:

- dispatch: hand one delivery, addressed to a set of subscriber ids, to
  those subscribers. A ``DispatchReceipt`` means the transport accepted the
  delivery; it says nothing about whether a subscriber has processed it.
- acknowledge: answer the HTTP request that carried the inbound event,
  exactly once.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, Field

from gong_connector.errors import AcknowledgmentError, DispatchError
from gong_connector.webhooks.events import EventCategory

logger = structlog.get_logger(__name__)

MESSAGE_TYPE = "gong_webhook"

# Undelivered messages kept per subscriber before the oldest are dropped
DEFAULT_MAILBOX_SIZE = 1000

# Type for subscriber handlers
SubscriberHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class OutboundDelivery(BaseModel):
    """One routed event, addressed to every matched subscriber."""

    subscriber_ids: list[str] = Field(..., min_length=1)
    category: EventCategory
    event_id: str
    event_time: str
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Inbound event as received, Gong field names",
    )

    def to_message(self) -> dict[str, Any]:
        """Message body handed to each subscriber."""
        return {"type": MESSAGE_TYPE, "payload": self.payload}


class DispatchReceipt(BaseModel):
    """Proof that a delivery was accepted for dispatch."""

    delivery_id: str = Field(default_factory=lambda: f"dlv_{uuid.uuid4().hex[:12]}")
    subscriber_ids: list[str]
    accepted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Acknowledgment(BaseModel):
    """Response for the originator of an inbound webhook."""

    request_id: str
    status_code: int
    body: dict[str, Any] = Field(default_factory=dict)


class DeliveryTransport(Protocol):
    """What the router needs from a transport."""

    async def dispatch(self, delivery: OutboundDelivery) -> DispatchReceipt:
        """Accept a delivery for its subscribers. Raises DispatchError."""
        ...

    async def acknowledge(
        self, request_id: str, status_code: int, body: dict[str, Any]
    ) -> None:
        """Respond to the originator of an inbound event."""
        ...


class InProcessTransport:
    """Transport for subscribers living in the same process.

    Subscribers either bind a handler, which is scheduled as a background
    task for each delivery, or collect messages from a per-subscriber
    mailbox. Acknowledgments resolve futures that the HTTP layer waits on.

    Example:
        transport = InProcessTransport()
        transport.bind("block-1", handle_message)

        transport.expect("req-1")
        outcome = await router.route(event, "req-1")
        ack = await transport.wait_for_ack("req-1", timeout=10.0)
    """

    def __init__(self, mailbox_size: int = DEFAULT_MAILBOX_SIZE) -> None:
        """Initialize the transport.

        Args:
            mailbox_size: Maximum queued messages per subscriber mailbox.
        """
        self._mailbox_size = mailbox_size
        self._handlers: dict[str, SubscriberHandler] = {}
        self._mailboxes: dict[str, asyncio.Queue[dict[str, Any]]] = {}
        self._pending_acks: dict[str, asyncio.Future[Acknowledgment]] = {}
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._closed = False
        self._logger = logger.bind(component="in_process_transport")

    # ------------------------------------------------------------------
    # Subscriber side
    # ------------------------------------------------------------------

    def bind(self, subscriber_id: str, handler: SubscriberHandler) -> None:
        """Deliver messages for a subscriber straight to a handler.

        Args:
            subscriber_id: Subscriber identity.
            handler: Async callable receiving the message body.
        """
        self._handlers[subscriber_id] = handler

    def unbind(self, subscriber_id: str) -> None:
        """Stop delivering to a subscriber's handler."""
        self._handlers.pop(subscriber_id, None)

    def _mailbox(self, subscriber_id: str) -> asyncio.Queue[dict[str, Any]]:
        if subscriber_id not in self._mailboxes:
            self._mailboxes[subscriber_id] = asyncio.Queue(maxsize=self._mailbox_size)
        return self._mailboxes[subscriber_id]

    async def receive(self, subscriber_id: str) -> dict[str, Any]:
        """Wait for the next mailbox message for a subscriber."""
        return await self._mailbox(subscriber_id).get()

    def pending(self, subscriber_id: str) -> int:
        """Number of undelivered mailbox messages for a subscriber."""
        queue = self._mailboxes.get(subscriber_id)
        return queue.qsize() if queue else 0

    def drain(self, subscriber_id: str) -> list[dict[str, Any]]:
        """Take every queued message for a subscriber without waiting."""
        queue = self._mailboxes.get(subscriber_id)
        messages: list[dict[str, Any]] = []
        while queue is not None and not queue.empty():
            messages.append(queue.get_nowait())
        return messages

    def discard(self, subscriber_id: str) -> int:
        """Forget a subscriber: unbind its handler and drop its mailbox.

        Returns:
            Number of undelivered messages dropped.
        """
        self._handlers.pop(subscriber_id, None)
        queue = self._mailboxes.pop(subscriber_id, None)
        dropped = queue.qsize() if queue else 0
        if dropped:
            self._logger.info("mailbox_discarded", subscriber_id=subscriber_id, dropped=dropped)
        return dropped

    def _enqueue(self, subscriber_id: str, message: dict[str, Any]) -> None:
        mailbox = self._mailbox(subscriber_id)
        if mailbox.full():
            mailbox.get_nowait()
            self._logger.warning("mailbox_overflow", subscriber_id=subscriber_id)
        mailbox.put_nowait(message)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, delivery: OutboundDelivery) -> DispatchReceipt:
        """Accept a delivery for every addressed subscriber.

        Args:
            delivery: Delivery to hand out.

        Returns:
            Receipt for the accepted delivery.

        Raises:
            DispatchError: If the transport has been shut down.
        """
        if self._closed:
            raise DispatchError("Transport is shut down")

        message = delivery.to_message()
        for subscriber_id in delivery.subscriber_ids:
            handler = self._handlers.get(subscriber_id)
            if handler is None:
                self._enqueue(subscriber_id, message)
                continue
            task = asyncio.create_task(self._run_handler(subscriber_id, handler, message))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

        receipt = DispatchReceipt(subscriber_ids=list(delivery.subscriber_ids))
        self._logger.info(
            "delivery_accepted",
            delivery_id=receipt.delivery_id,
            event_id=delivery.event_id,
            category=delivery.category.value,
            subscriber_count=len(delivery.subscriber_ids),
        )
        return receipt

    async def _run_handler(
        self,
        subscriber_id: str,
        handler: SubscriberHandler,
        message: dict[str, Any],
    ) -> None:
        try:
            await handler(message)
        except Exception as e:
            # Subscriber failures stay with the subscriber.
            self._logger.warning(
                "subscriber_handler_error",
                subscriber_id=subscriber_id,
                error=str(e),
            )

    # ------------------------------------------------------------------
    # Acknowledgment
    # ------------------------------------------------------------------

    def expect(self, request_id: str) -> None:
        """Register an inbound request that will be acknowledged."""
        if request_id in self._pending_acks:
            raise AcknowledgmentError("Request already pending", request_id=request_id)
        self._pending_acks[request_id] = asyncio.get_running_loop().create_future()

    async def acknowledge(
        self, request_id: str, status_code: int, body: dict[str, Any]
    ) -> None:
        """Resolve the pending response for a request.

        Raises:
            AcknowledgmentError: If the request is unknown or already answered.
        """
        future = self._pending_acks.get(request_id)
        if future is None:
            raise AcknowledgmentError("Unknown request", request_id=request_id)
        if future.done():
            raise AcknowledgmentError("Request already acknowledged", request_id=request_id)
        future.set_result(
            Acknowledgment(request_id=request_id, status_code=status_code, body=body)
        )

    async def wait_for_ack(self, request_id: str, timeout: float | None = None) -> Acknowledgment:
        """Wait for a request's acknowledgment and forget the request.

        Raises:
            AcknowledgmentError: If the request was never expected.
            TimeoutError: If no acknowledgment arrives in time.
        """
        future = self._pending_acks.get(request_id)
        if future is None:
            raise AcknowledgmentError("Unknown request", request_id=request_id)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        finally:
            self._pending_acks.pop(request_id, None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Stop accepting deliveries and wait for running handlers."""
        self._closed = True
        if self._background_tasks:
            self._logger.info(
                "waiting_for_subscriber_handlers",
                count=len(self._background_tasks),
            )
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
