from __future__ import annotations

from typing import Any, Protocol


class Subscriber(Protocol):
    """A live connection that can receive broadcast frames."""

    @property
    def key(self) -> str: ...

    def deliver(self, raw: str) -> None:
        """Queue a frame for sending. Must not block."""
        ...


class BroadcastBus(Protocol):
    async def subscribe(self, topic: str, subscriber: Subscriber) -> None: ...

    async def unsubscribe(self, topic: str, subscriber: Subscriber) -> None: ...

    async def unsubscribe_all(self, subscriber: Subscriber) -> list[str]:
        """Drop every membership of ``subscriber``; return the topics left."""
        ...

    async def publish(self, topic: str, event_type: str, data: dict[str, Any]) -> int:
        """Fan out to the current subscribers; return how many were reached."""
        ...

    async def subscribers(self, topic: str) -> frozenset[Subscriber]: ...
