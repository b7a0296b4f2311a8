"""Process-wide registry of which admins are online."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import AsyncIterator, Awaitable, Callable

from support_chat.application.ports.clock import Clock, utcnow
from support_chat.domain.entities.identity import AdminUser
from support_chat.domain.entities.presence import PresenceEntry
from support_chat.domain.value_objects.enums import PresenceStatus

logger = logging.getLogger(__name__)

PresenceListener = Callable[[PresenceEntry], Awaitable[None]]


class PresenceTracker:
    """Reference-counted online/offline state per admin.

    Every live admin conversation subscription holds one reference. An admin
    goes offline only when the last reference is released, so closing one of
    two browser tabs keeps the admin online.

    All reads and writes go through one lock. Listeners are notified while the
    lock is held, which keeps deltas in mutation order and lets
    :meth:`snapshot` guarantee that no delta interleaves with a snapshot.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self._entries: dict[int, PresenceEntry] = {}
        self._listeners: list[PresenceListener] = []
        self._lock = asyncio.Lock()
        self._clock = clock

    def add_listener(self, listener: PresenceListener) -> None:
        self._listeners.append(listener)

    async def mark_online(self, admin: AdminUser) -> PresenceEntry:
        async with self._lock:
            current = self._entries.get(admin.id)
            refs = current.connections + 1 if current else 1
            available = current.available if current else True
            entry = PresenceEntry(
                admin_id=admin.id,
                admin_name=admin.display_name,
                status=_status(refs, available),
                changed_at=self._clock(),
                connections=refs,
                available=available,
            )
            self._entries[admin.id] = entry
            await self._notify(entry)
        return entry

    async def mark_offline(self, admin: AdminUser) -> PresenceEntry | None:
        """Release one reference. Unknown admins are ignored."""
        async with self._lock:
            current = self._entries.get(admin.id)
            if current is None:
                return None
            refs = max(current.connections - 1, 0)
            entry = replace(
                current,
                admin_name=admin.display_name,
                status=_status(refs, current.available),
                changed_at=self._clock(),
                connections=refs,
            )
            self._entries[admin.id] = entry
            await self._notify(entry)
        return entry

    async def toggle_availability(self, admin: AdminUser) -> PresenceEntry:
        """Flip whether the admin shows as online; listeners always hear about it.

        Connection references are untouched, so an admin who hides and then
        reappears is online again straight away if still connected.
        """
        async with self._lock:
            current = self._entries.get(admin.id)
            refs = current.connections if current else 0
            available = not current.available if current else False
            entry = PresenceEntry(
                admin_id=admin.id,
                admin_name=admin.display_name,
                status=_status(refs, available),
                changed_at=self._clock(),
                connections=refs,
                available=available,
            )
            self._entries[admin.id] = entry
            await self._notify(entry)
        logger.info("Admin %d availability set to %s", admin.id, available)
        return entry

    async def list_online(self) -> list[PresenceEntry]:
        async with self._lock:
            return self._online()

    async def get(self, admin_id: int) -> PresenceEntry | None:
        async with self._lock:
            return self._entries.get(admin_id)

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[list[PresenceEntry]]:
        """Yield the online admins and block mutations until the block exits."""
        async with self._lock:
            yield self._online()

    def _online(self) -> list[PresenceEntry]:
        return sorted(
            (e for e in self._entries.values() if e.is_online),
            key=lambda e: e.admin_id,
        )

    async def _notify(self, entry: PresenceEntry) -> None:
        for listener in self._listeners:
            try:
                await listener(entry)
            except Exception:
                logger.exception("Presence listener failed for admin %d", entry.admin_id)


def _status(connections: int, available: bool) -> PresenceStatus:
    return PresenceStatus.ONLINE if connections and available else PresenceStatus.OFFLINE
