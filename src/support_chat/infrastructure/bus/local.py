"""In-process topic registry and fan-out."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from support_chat.application.ports.bus import Subscriber
from support_chat.infrastructure.ws.protocol import encode

logger = logging.getLogger(__name__)


class InProcessBroadcastBus:
    """Implements application.ports.bus.BroadcastBus for a single process.

    Membership changes are serialized by one lock. ``publish`` fans out over a
    copy of the subscriber set taken under that lock, so a concurrent
    (un)subscribe never mutates the set being iterated.
    """

    def __init__(self) -> None:
        self._topics: dict[str, set[Subscriber]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, topic: str, subscriber: Subscriber) -> None:
        async with self._lock:
            self._topics.setdefault(topic, set()).add(subscriber)
        logger.debug("%s subscribed to %s", subscriber.key, topic)

    async def unsubscribe(self, topic: str, subscriber: Subscriber) -> None:
        async with self._lock:
            self._discard(topic, subscriber)
        logger.debug("%s unsubscribed from %s", subscriber.key, topic)

    async def unsubscribe_all(self, subscriber: Subscriber) -> list[str]:
        async with self._lock:
            topics = [t for t, subs in self._topics.items() if subscriber in subs]
            for topic in topics:
                self._discard(topic, subscriber)
        return topics

    async def publish(self, topic: str, event_type: str, data: dict[str, Any]) -> int:
        raw = encode(event_type, data, topic=topic)
        async with self._lock:
            targets = tuple(self._topics.get(topic, ()))
        delivered = 0
        for subscriber in targets:
            try:
                subscriber.deliver(raw)
            except Exception:
                logger.exception("Delivery of %s to %s failed", event_type, subscriber.key)
            else:
                delivered += 1
        return delivered

    async def subscribers(self, topic: str) -> frozenset[Subscriber]:
        async with self._lock:
            return frozenset(self._topics.get(topic, ()))

    def stats(self) -> dict[str, int]:
        return {
            "topics": len(self._topics),
            "subscriptions": sum(len(s) for s in self._topics.values()),
        }

    def _discard(self, topic: str, subscriber: Subscriber) -> None:
        subs = self._topics.get(topic)
        if subs is None:
            return
        subs.discard(subscriber)
        if not subs:
            del self._topics[topic]
