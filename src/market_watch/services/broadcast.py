"""Best-effort topic fan-out to real-time subscribers."""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from market_watch.db import AssetClass
from market_watch.schemas import CachedAsset, SnapshotEvent
from market_watch.utils import utcnow

logger = logging.getLogger(__name__)

_SNAPSHOT_EVENT_TYPES = {
    AssetClass.CRYPTO: "crypto_update",
    AssetClass.EQUITY: "equity_update",
}


def market_topic(asset_class: AssetClass) -> str:
    return asset_class.value


def owner_topic(owner_id: str) -> str:
    return f"user:{owner_id}"


class Subscription:
    """One subscriber's bounded mailbox.

    When full, the oldest pending event is dropped so publishers never wait.
    There is no replay: a subscriber only sees events published after it joined.
    """

    def __init__(self, topics: Iterable[str], max_pending: int = 16) -> None:
        self.topics = frozenset(topics)
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_pending)
        self.dropped = 0

    def offer(self, event: dict[str, Any]) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(event)

    async def get(self) -> dict[str, Any]:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class BroadcastHub:
    """Topic-keyed registry of subscriptions.

    Topics are asset classes ("crypto", "equity") for snapshot updates and
    "user:<owner_id>" for in-app notifications.
    """

    def __init__(self, max_items: int = 50, max_pending: int = 16) -> None:
        self._max_items = max_items
        self._max_pending = max_pending
        self._subscribers: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, topics: Iterable[str]) -> Subscription:
        subscription = Subscription(topics, max_pending=self._max_pending)
        for topic in subscription.topics:
            self._subscribers[topic].add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        for topic in subscription.topics:
            subscribers = self._subscribers.get(topic)
            if subscribers is None:
                continue
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, event: dict[str, Any]) -> int:
        """Queue the event for every subscriber of topic; returns how many got it."""
        targets = list(self._subscribers.get(topic, ()))
        for subscription in targets:
            subscription.offer(event)
        return len(targets)

    def publish_snapshot(
        self, asset_class: AssetClass, assets: list[CachedAsset]
    ) -> int:
        """Publish a refreshed snapshot, truncated to the fan-out limit."""
        event = SnapshotEvent(
            type=_SNAPSHOT_EVENT_TYPES[asset_class],
            data=assets[: self._max_items],
            timestamp=utcnow(),
        )
        delivered = self.publish(market_topic(asset_class), event.model_dump(mode="json"))
        logger.debug("Broadcast %s to %d subscribers", event.type, delivered)
        return delivered
