"""Subscription management endpoints.

Lets the workflow host drive subscription block lifecycles over HTTP:
activating a block registers it, draining unregisters it, and queued
webhook messages can be collected as the block's output events.
"""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from gong_connector.blocks.subscriptions import SUBSCRIPTION_BLOCKS, SubscriptionBlock
from gong_connector.webhooks.events import EventCategory, resolve_category
from gong_connector.webhooks.registry import SubscriptionRegistry
from gong_connector.webhooks.transport import InProcessTransport

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


# ============================================================================
# Request / Response Models
# ============================================================================


class ActivateRequest(BaseModel):
    """Request to activate a subscription block."""

    workspace_id: str | None = Field(
        default=None,
        description="Only emit events for calls from this workspace",
    )


class SubscriberResponse(BaseModel):
    """One registered subscriber."""

    subscriber_id: str
    workspace_id: str | None


class SubscriptionListResponse(BaseModel):
    """Subscribers of one category."""

    category: EventCategory
    subscribers: list[SubscriberResponse]


class BlockStatusResponse(BaseModel):
    """Lifecycle status after activation or drain."""

    category: EventCategory
    subscriber_id: str
    status: str


class BlockEventsResponse(BaseModel):
    """Events emitted by a subscription block since the last poll."""

    subscriber_id: str
    events: list[dict[str, Any]]


# ============================================================================
# Helpers
# ============================================================================


def _resolve(category: str) -> tuple[EventCategory, SubscriptionBlock]:
    resolved = resolve_category(category)
    if resolved is None:
        raise HTTPException(status_code=404, detail=f"Unknown event category: {category}")
    return resolved, SUBSCRIPTION_BLOCKS[resolved]


def _registry(request: Request) -> SubscriptionRegistry:
    return request.app.state.registry


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/{category}", response_model=SubscriptionListResponse)
async def list_subscriptions(category: str, request: Request) -> SubscriptionListResponse:
    """List subscribers registered for an event category."""
    resolved, _ = _resolve(category)
    records = await _registry(request).list_subscribers(resolved)
    return SubscriptionListResponse(
        category=resolved,
        subscribers=[
            SubscriberResponse(subscriber_id=r.subscriber_id, workspace_id=r.attribute_filter)
            for r in records
        ],
    )


@router.put("/{category}/{subscriber_id}", response_model=BlockStatusResponse)
async def activate_subscription(
    category: str,
    subscriber_id: str,
    request: Request,
    body: ActivateRequest | None = None,
) -> BlockStatusResponse:
    """Activate a subscription block, registering it for the category."""
    resolved, block = _resolve(category)
    workspace_id = body.workspace_id if body else None
    status = await block.on_activate(_registry(request), subscriber_id, workspace_id)
    return BlockStatusResponse(category=resolved, subscriber_id=subscriber_id, status=status.value)


@router.delete("/{category}/{subscriber_id}", response_model=BlockStatusResponse)
async def drain_subscription(
    category: str,
    subscriber_id: str,
    request: Request,
) -> BlockStatusResponse:
    """Drain a subscription block, unregistering it from the category."""
    resolved, block = _resolve(category)
    status = await block.on_deactivate(_registry(request), subscriber_id)
    request.app.state.transport.discard(subscriber_id)
    return BlockStatusResponse(category=resolved, subscriber_id=subscriber_id, status=status.value)


@router.get("/{category}/{subscriber_id}/events", response_model=BlockEventsResponse)
async def collect_events(
    category: str,
    subscriber_id: str,
    request: Request,
) -> BlockEventsResponse:
    """Collect the events a block emitted from its queued webhook messages."""
    _, block = _resolve(category)
    transport: InProcessTransport = request.app.state.transport

    events = []
    for message in transport.drain(subscriber_id):
        emitted = block.on_internal_message(message)
        if emitted is not None:
            events.append(emitted)

    logger.debug("block_events_collected", subscriber_id=subscriber_id, count=len(events))
    return BlockEventsResponse(subscriber_id=subscriber_id, events=events)
