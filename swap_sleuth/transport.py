"""
Transport and sink interfaces for the update consumer.

The analyzer core never talks to Redis directly. It consumes update
notifications and snapshot lookups through UpdateTransport and publishes
opportunities through OpportunitySink. Redis and in-memory realizations
are provided here.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, List, Optional, Protocol, runtime_checkable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .exceptions import FetchError
from .types import ArbitrageOpportunity, NormalizedBook
from .utils import safe_json_dump

logger = logging.getLogger(__name__)

DEFAULT_UPDATES_CHANNEL = "orderbook_updates"
DEFAULT_OPPORTUNITIES_CHANNEL = "arbitrage_opportunities"
DEFAULT_KEY_PREFIX = "orderbook:"
DEFAULT_BOOK_TTL_SEC = 30


@runtime_checkable
class UpdateTransport(Protocol):
    """Source of update notifications and book snapshots."""

    def updates(self) -> AsyncIterator[str]:
        """Yield raw notification payloads in arrival order."""
        ...

    async def fetch(self, key: str) -> Optional[str]:
        """Return the JSON document stored at key, or None if absent."""
        ...


@runtime_checkable
class OpportunitySink(Protocol):
    """Destination for emitted opportunities."""

    name: str

    async def publish(self, opportunity: ArbitrageOpportunity) -> None:
        ...


# ============================================================================
# Sinks
# ============================================================================


class LoggingSink:
    """Logs each opportunity at INFO."""

    name = "log"

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    async def publish(self, opportunity: ArbitrageOpportunity) -> None:
        self.log.info(f"Opportunity {opportunity.id}: {opportunity.format_log()}")


class CollectingSink:
    """Keeps every opportunity in memory."""

    name = "collect"

    def __init__(self):
        self.opportunities: List[ArbitrageOpportunity] = []

    async def publish(self, opportunity: ArbitrageOpportunity) -> None:
        self.opportunities.append(opportunity)


class RedisOpportunitySink:
    """Publishes opportunities as JSON on a Redis channel."""

    name = "redis"

    def __init__(
        self, client: aioredis.Redis, channel: str = DEFAULT_OPPORTUNITIES_CHANNEL
    ):
        self.client = client
        self.channel = channel

    async def publish(self, opportunity: ArbitrageOpportunity) -> None:
        await self.client.publish(self.channel, safe_json_dump(opportunity.to_dict()))


# ============================================================================
# Transports
# ============================================================================


class InMemoryTransport:
    """
    Queue-and-dict transport with the same key conventions as Redis.

    Used by tests and by single-process runs that feed books directly.
    """

    _CLOSED = object()

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.key_prefix = key_prefix
        self.store: Dict[str, str] = {}
        self._queue: asyncio.Queue = asyncio.Queue()

    def storage_key(self, book: NormalizedBook) -> str:
        return f"{self.key_prefix}{book.key}"

    async def notify(self, payload: str) -> None:
        await self._queue.put(payload)

    async def push_order_book(self, book: NormalizedBook) -> str:
        key = self.storage_key(book)
        self.store[key] = book.to_json()
        await self.notify(key)
        return key

    async def close(self) -> None:
        """End the update stream once queued payloads are drained."""
        await self._queue.put(self._CLOSED)

    async def updates(self) -> AsyncIterator[str]:
        while True:
            payload = await self._queue.get()
            if payload is self._CLOSED:
                return
            yield payload

    async def fetch(self, key: str) -> Optional[str]:
        return self.store.get(key)


class RedisTransport:
    """
    Redis key-value + pub/sub transport.

    Producers SET the book JSON under "<prefix><exchange>:<pair>" with a TTL
    and PUBLISH the key on the updates channel; the consumer subscribes to
    the channel and GETs each notified key.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        updates_channel: str = DEFAULT_UPDATES_CHANNEL,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        book_ttl_sec: int = DEFAULT_BOOK_TTL_SEC,
    ):
        self.client = client
        self.updates_channel = updates_channel
        self.key_prefix = key_prefix
        self.book_ttl_sec = book_ttl_sec

    @classmethod
    def from_config(cls, config) -> "RedisTransport":
        """Build from a RedisConfig."""
        client = aioredis.Redis(
            host=config.host,
            port=config.port,
            password=config.password,
            db=config.db,
            decode_responses=True,
        )
        return cls(
            client,
            updates_channel=config.updates_channel,
            key_prefix=config.key_prefix,
            book_ttl_sec=config.book_ttl_sec,
        )

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    def storage_key(self, book: NormalizedBook) -> str:
        return f"{self.key_prefix}{book.key}"

    async def push_order_book(self, book: NormalizedBook) -> str:
        """Store the book with a TTL and announce its key."""
        key = self.storage_key(book)
        await self.client.set(key, book.to_json(), ex=self.book_ttl_sec)
        await self.client.publish(self.updates_channel, key)
        logger.debug(f"Pushed and published order book {key}")
        return key

    async def updates(self) -> AsyncIterator[str]:
        pubsub = self.client.pubsub()
        await pubsub.subscribe(self.updates_channel)
        logger.info(f"Subscribed to {self.updates_channel} channel")
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = message.get("data")
                if isinstance(data, bytes):
                    data = data.decode("utf-8", errors="replace")
                yield data
        finally:
            await pubsub.unsubscribe(self.updates_channel)
            await pubsub.aclose()

    async def fetch(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise FetchError(f"failed to fetch {key}: {e}", key=key) from e

    async def close(self) -> None:
        await self.client.aclose()
