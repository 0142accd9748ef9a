"""Subscription storage.

Subscription lists are kept in a shared key-value store, one key per event
category. The store offers plain get/set only: there is no compare-and-swap,
so callers doing read-modify-write must accept (or serialize around) the
lost-update window.

Stored values keep the field names the Gong app has always used
(``blockId``/``workspaceId``), so existing Redis data stays readable.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gong_connector.errors import SubscriptionStoreError
from gong_connector.webhooks.events import EventCategory

logger = structlog.get_logger(__name__)

KEY_PREFIX = "webhook:subscription"


def subscription_key(category: EventCategory) -> str:
    """Build the store key for a category's subscription list.

    Args:
        category: Event category.

    Returns:
        Key string, e.g. ``webhook:subscription:call-created``.
    """
    return f"{KEY_PREFIX}:{category.value}"


class SubscriberRecord(BaseModel):
    """A registered consumer of one event category."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    subscriber_id: str = Field(..., alias="blockId", min_length=1)
    attribute_filter: str | None = Field(
        default=None,
        alias="workspaceId",
        description="Only deliver events from this workspace",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Stored representation."""
        return self.model_dump(by_alias=True, exclude_none=True)


def serialize(records: list[SubscriberRecord]) -> str:
    """Serialize a subscription list for storage."""
    return json.dumps([record.to_json_dict() for record in records])


def deserialize(data: str | bytes) -> list[SubscriberRecord]:
    """Deserialize a stored subscription list.

    Raises:
        ValueError: If the data is not a JSON list of subscriber records.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    raw = json.loads(data)
    if not isinstance(raw, list):
        raise ValueError("subscription list is not a JSON array")
    return [SubscriberRecord.model_validate(item) for item in raw]


class SubscriptionStore(Protocol):
    """Key-value access to subscription lists, keyed by category."""

    async def get(self, category: EventCategory) -> list[SubscriberRecord] | None:
        """Load the list for a category; None if it was never written."""
        ...

    async def set(self, category: EventCategory, records: list[SubscriberRecord]) -> None:
        """Replace the list for a category. Raises SubscriptionStoreError."""
        ...

    async def aclose(self) -> None:
        """Release connections held by the store."""
        ...


class InMemorySubscriptionStore:
    """Dict-backed store for tests and single-process deployments.

    Example:
        store = InMemorySubscriptionStore()
        await store.set(EventCategory.CALL_CREATED, [SubscriberRecord(blockId="b1")])
        records = await store.get(EventCategory.CALL_CREATED)
    """

    def __init__(
        self,
        on_read: Callable[[EventCategory], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            on_read: Awaited after every read, before returning. Lets tests
                park a caller between its read and its write.
        """
        self._data: dict[str, str] = {}
        self._on_read = on_read
        self.reads = 0
        self.writes = 0

    async def get(self, category: EventCategory) -> list[SubscriberRecord] | None:
        self.reads += 1
        data = self._data.get(subscription_key(category))
        records = deserialize(data) if data is not None else None
        if self._on_read is not None:
            await self._on_read(category)
        return records

    async def set(self, category: EventCategory, records: list[SubscriberRecord]) -> None:
        self.writes += 1
        self._data[subscription_key(category)] = serialize(records)

    async def aclose(self) -> None:
        pass

    def clear(self) -> None:
        """Drop every stored list."""
        self._data.clear()


class RedisSubscriptionStore:
    """Subscription store backed by Redis GET/SET.

    Example:
        from redis.asyncio import Redis

        redis = Redis.from_url("redis://localhost:6379")
        store = RedisSubscriptionStore(redis)
    """

    def __init__(self, redis: Any) -> None:  # redis.asyncio.Redis
        """Initialize the store.

        Args:
            redis: Redis client instance.
        """
        self.redis = redis
        self._logger = logger.bind(component="subscription_store")

    async def get(self, category: EventCategory) -> list[SubscriberRecord] | None:
        key = subscription_key(category)
        try:
            data = await self.redis.get(key)
        except Exception as e:
            self._logger.error("subscription_get_error", key=key, error=str(e))
            raise SubscriptionStoreError(
                f"Failed to read subscriptions: {e}", key=key, operation="get"
            ) from e

        if data is None:
            return None

        try:
            return deserialize(data)
        except (ValueError, ValidationError) as e:
            # A corrupt list is treated as absent; the next write replaces it.
            self._logger.warning("subscription_list_corrupt", key=key, error=str(e))
            return None

    async def set(self, category: EventCategory, records: list[SubscriberRecord]) -> None:
        key = subscription_key(category)
        try:
            await self.redis.set(key, serialize(records))
        except Exception as e:
            self._logger.error("subscription_set_error", key=key, error=str(e))
            raise SubscriptionStoreError(
                f"Failed to write subscriptions: {e}", key=key, operation="set"
            ) from e
        self._logger.debug("subscription_list_written", key=key, count=len(records))

    async def aclose(self) -> None:
        """Close the Redis connection pool."""
        await self.redis.aclose()
        self._logger.info("subscription_store_closed")


def create_subscription_store(redis_url: str | None) -> SubscriptionStore:
    """Create the store for a deployment.

    Args:
        redis_url: Redis connection URL, or None for an in-memory store.

    Returns:
        Configured subscription store.
    """
    if not redis_url:
        logger.info("subscription_store_in_memory")
        return InMemorySubscriptionStore()

    from redis.asyncio import Redis

    logger.info("subscription_store_redis")
    return RedisSubscriptionStore(Redis.from_url(redis_url))
