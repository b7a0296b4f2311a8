from __future__ import annotations

import pytest

from support_chat.domain.value_objects.enums import PresenceStatus
from support_chat.services.presence_tracker import PresenceTracker
from tests.conftest import ADMIN, FIXED_NOW, OTHER_ADMIN


@pytest.fixture
def tracker() -> PresenceTracker:
    return PresenceTracker(clock=lambda: FIXED_NOW)


@pytest.fixture
def changes(tracker):
    seen = []

    async def listener(entry):
        seen.append((entry.admin_id, entry.status))

    tracker.add_listener(listener)
    return seen


@pytest.mark.asyncio
async def test_mark_online(tracker, changes):
    entry = await tracker.mark_online(ADMIN)

    assert entry.status == PresenceStatus.ONLINE
    assert entry.admin_name == ADMIN.email
    assert entry.changed_at == FIXED_NOW
    assert changes == [(ADMIN.id, PresenceStatus.ONLINE)]
    assert [e.admin_id for e in await tracker.list_online()] == [ADMIN.id]


@pytest.mark.asyncio
async def test_offline_only_after_last_reference(tracker, changes):
    await tracker.mark_online(ADMIN)
    await tracker.mark_online(ADMIN)

    first = await tracker.mark_offline(ADMIN)
    assert first.status == PresenceStatus.ONLINE
    assert first.connections == 1

    second = await tracker.mark_offline(ADMIN)
    assert second.status == PresenceStatus.OFFLINE
    assert second.connections == 0
    assert await tracker.list_online() == []
    assert changes[-1] == (ADMIN.id, PresenceStatus.OFFLINE)


@pytest.mark.asyncio
async def test_mark_offline_for_unknown_admin(tracker, changes):
    assert await tracker.mark_offline(ADMIN) is None
    assert changes == []


@pytest.mark.asyncio
async def test_reference_count_never_negative(tracker):
    await tracker.mark_online(ADMIN)
    await tracker.mark_offline(ADMIN)
    entry = await tracker.mark_offline(ADMIN)

    assert entry.connections == 0
    again = await tracker.mark_online(ADMIN)
    assert again.connections == 1


@pytest.mark.asyncio
async def test_list_online_sorted(tracker):
    await tracker.mark_online(OTHER_ADMIN)
    await tracker.mark_online(ADMIN)

    assert [e.admin_id for e in await tracker.list_online()] == [ADMIN.id, OTHER_ADMIN.id]
    assert (await tracker.get(OTHER_ADMIN.id)).is_online


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_tracking(tracker, changes):
    async def broken(entry):
        raise RuntimeError("boom")

    tracker.add_listener(broken)

    await tracker.mark_online(ADMIN)

    assert (await tracker.get(ADMIN.id)).is_online
    assert changes == [(ADMIN.id, PresenceStatus.ONLINE)]


@pytest.mark.asyncio
async def test_toggle_hides_connected_admin(tracker, changes):
    await tracker.mark_online(ADMIN)

    hidden = await tracker.toggle_availability(ADMIN)

    assert hidden.status == PresenceStatus.OFFLINE
    assert hidden.available is False
    assert hidden.connections == 1
    assert await tracker.list_online() == []

    # new subscriptions do not bring a hidden admin back
    await tracker.mark_online(ADMIN)
    assert await tracker.list_online() == []

    shown = await tracker.toggle_availability(ADMIN)
    assert shown.status == PresenceStatus.ONLINE
    assert shown.connections == 2
    assert changes == [
        (ADMIN.id, PresenceStatus.ONLINE),
        (ADMIN.id, PresenceStatus.OFFLINE),
        (ADMIN.id, PresenceStatus.OFFLINE),
        (ADMIN.id, PresenceStatus.ONLINE),
    ]


@pytest.mark.asyncio
async def test_toggle_without_connections_stays_offline(tracker, changes):
    first = await tracker.toggle_availability(ADMIN)
    second = await tracker.toggle_availability(ADMIN)

    assert (first.available, first.status) == (False, PresenceStatus.OFFLINE)
    assert (second.available, second.status) == (True, PresenceStatus.OFFLINE)
    assert len(changes) == 2

    assert (await tracker.mark_online(ADMIN)).is_online
