"""Subscription registration and removal.

Blocks register themselves for an event category when they are activated
and unregister when drained. Both operations are idempotent because the
host may replay activation for the same block (restart, resync).

Registration is a read-modify-write over the store. Two concurrent
mutations of the same category can both read the same list, and the later
write then discards the earlier one. Pass ``serialize_mutations=True`` to
take a per-category lock around each mutation; that closes the window for
callers sharing this registry instance, not across processes.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from gong_connector.webhooks.events import CATALOG, EventCategory
from gong_connector.webhooks.store import SubscriberRecord, SubscriptionStore

logger = structlog.get_logger(__name__)


def _require_category(category: EventCategory) -> EventCategory:
    """Reject anything outside the catalog."""
    if not isinstance(category, EventCategory) or category not in CATALOG:
        raise ValueError(f"Unknown event category: {category!r}")
    return category


class SubscriptionRegistry:
    """Registers and unregisters subscribers against a subscription store."""

    def __init__(
        self,
        store: SubscriptionStore,
        *,
        serialize_mutations: bool = False,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Subscription store holding the lists.
            serialize_mutations: Lock each category during register/unregister.
        """
        self._store = store
        self._serialize = serialize_mutations
        self._locks: dict[EventCategory, asyncio.Lock] = {}
        self._logger = logger.bind(component="subscription_registry")

    @property
    def store(self) -> SubscriptionStore:
        return self._store

    @asynccontextmanager
    async def _mutation(self, category: EventCategory) -> AsyncIterator[None]:
        if not self._serialize:
            yield
            return
        lock = self._locks.setdefault(category, asyncio.Lock())
        async with lock:
            yield

    async def register(
        self,
        category: EventCategory,
        subscriber_id: str,
        attribute_filter: str | None = None,
    ) -> None:
        """Register a subscriber for a category.

        Registering an id that is already present is a no-op, even if the
        attribute filter differs.

        Args:
            category: Event category to subscribe to.
            subscriber_id: Identity of the subscribing block.
            attribute_filter: Optional workspace id to filter on.

        Raises:
            ValueError: If the category is not in the catalog.
            SubscriptionStoreError: If the store cannot be read or written.
        """
        _require_category(category)

        async with self._mutation(category):
            records = list(await self._store.get(category) or [])

            if any(r.subscriber_id == subscriber_id for r in records):
                self._logger.debug(
                    "subscriber_already_registered",
                    category=category.value,
                    subscriber_id=subscriber_id,
                )
                return

            records.append(
                SubscriberRecord(
                    subscriber_id=subscriber_id,
                    attribute_filter=attribute_filter or None,
                )
            )
            await self._store.set(category, records)

        self._logger.info(
            "subscriber_registered",
            category=category.value,
            subscriber_id=subscriber_id,
            attribute_filter=attribute_filter,
            subscriber_count=len(records),
        )

    async def unregister(self, category: EventCategory, subscriber_id: str) -> None:
        """Remove a subscriber from a category.

        Every record carrying the id is removed. Unknown ids and categories
        that were never written are silent no-ops.

        Args:
            category: Event category.
            subscriber_id: Identity of the subscribing block.

        Raises:
            ValueError: If the category is not in the catalog.
            SubscriptionStoreError: If the store cannot be read or written.
        """
        _require_category(category)

        async with self._mutation(category):
            records = await self._store.get(category)
            if records is None:
                return

            remaining = [r for r in records if r.subscriber_id != subscriber_id]
            await self._store.set(category, remaining)

        removed = len(records) - len(remaining)
        if removed:
            self._logger.info(
                "subscriber_unregistered",
                category=category.value,
                subscriber_id=subscriber_id,
                removed=removed,
                subscriber_count=len(remaining),
            )

    async def list_subscribers(self, category: EventCategory) -> list[SubscriberRecord]:
        """Get the current subscription list for a category.

        Args:
            category: Event category.

        Returns:
            Subscriber records, empty if none were ever registered.
        """
        _require_category(category)
        return list(await self._store.get(category) or [])

