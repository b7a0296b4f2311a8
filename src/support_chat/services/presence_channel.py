"""Global presence topic: snapshot on join, deltas on every change."""
from __future__ import annotations

import logging

from support_chat.application.ports.bus import BroadcastBus, Subscriber
from support_chat.domain.entities.presence import PresenceEntry
from support_chat.infrastructure.ws.protocol import encode
from support_chat.services.presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)

PRESENCE_TOPIC = "presence"
PRESENCE_EVENT = "presence"


class PresenceChannel:
    def __init__(self, bus: BroadcastBus, tracker: PresenceTracker) -> None:
        self._bus = bus
        self._tracker = tracker
        tracker.add_listener(self.presence_changed)

    async def subscribe(self, subscriber: Subscriber) -> int:
        """Send the current online admins, then join the topic.

        Both happen under the tracker lock so the snapshot always precedes
        any later delta. Returns the number of snapshot entries sent.
        """
        async with self._tracker.snapshot() as online:
            for entry in online:
                subscriber.deliver(encode(PRESENCE_EVENT, entry.as_payload(), topic=PRESENCE_TOPIC))
            await self._bus.subscribe(PRESENCE_TOPIC, subscriber)
        logger.debug("%s joined presence with %d online admins", subscriber.key, len(online))
        return len(online)

    async def unsubscribe(self, subscriber: Subscriber) -> None:
        await self._bus.unsubscribe(PRESENCE_TOPIC, subscriber)

    async def presence_changed(self, entry: PresenceEntry) -> None:
        await self._bus.publish(PRESENCE_TOPIC, PRESENCE_EVENT, entry.as_payload())
