"""Gong webhook subscription and fan-out.

This module provides:
- EventCategory / CATALOG: The closed set of Gong webhook event types
- SubscriptionStore: Persistent subscription lists (in-memory or Redis)
- SubscriptionRegistry: Idempotent register/unregister of subscribers
- WebhookRouter: Workspace-filtered fan-out of inbound events
- InProcessTransport: Dispatch to subscribers and acknowledgment of callers
"""

from gong_connector.webhooks.events import (
    CATALOG,
    CatalogEntry,
    EventCategory,
    GongCall,
    InboundEvent,
    get_catalog_entry,
    resolve_category,
)
from gong_connector.webhooks.registry import SubscriptionRegistry
from gong_connector.webhooks.router import (
    RouteOutcome,
    RouteStatus,
    WebhookRouter,
    matches_filter,
    select_subscribers,
)
from gong_connector.webhooks.store import (
    InMemorySubscriptionStore,
    RedisSubscriptionStore,
    SubscriberRecord,
    SubscriptionStore,
    create_subscription_store,
    subscription_key,
)
from gong_connector.webhooks.transport import (
    MESSAGE_TYPE,
    Acknowledgment,
    DeliveryTransport,
    DispatchReceipt,
    InProcessTransport,
    OutboundDelivery,
)

__all__ = [
    # Events
    "CATALOG",
    "CatalogEntry",
    "EventCategory",
    "GongCall",
    "InboundEvent",
    "get_catalog_entry",
    "resolve_category",
    # Store
    "InMemorySubscriptionStore",
    "RedisSubscriptionStore",
    "SubscriberRecord",
    "SubscriptionStore",
    "create_subscription_store",
    "subscription_key",
    # Registry
    "SubscriptionRegistry",
    # Router
    "RouteOutcome",
    "RouteStatus",
    "WebhookRouter",
    "matches_filter",
    "select_subscribers",
    # Transport
    "MESSAGE_TYPE",
    "Acknowledgment",
    "DeliveryTransport",
    "DispatchReceipt",
    "InProcessTransport",
    "OutboundDelivery",
]
