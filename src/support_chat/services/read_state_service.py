from __future__ import annotations

from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import ForbiddenError, NotFoundError
from support_chat.application.policies.permissions import assert_admin
from support_chat.application.ports.clock import Clock, utcnow
from support_chat.application.uow import UnitOfWork
from support_chat.domain.entities.conversation import Conversation
from support_chat.domain.entities.participant import Participant


async def _participant(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> tuple[Conversation, Participant]:
    """Read state is tracked per participating admin only."""
    assert_admin(identity)
    assert identity.admin is not None
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    participant = await uow.participants.get(conversation_id, identity.admin.id)
    if participant is None:
        raise ForbiddenError("Not a participant of this conversation")
    return conversation, participant


async def mark_read(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
    *,
    clock: Clock = utcnow,
) -> None:
    await _participant(conversation_id, identity, uow)
    assert identity.admin is not None
    await uow.participants_w.mark_read(conversation_id, identity.admin.id, clock())
    await uow.commit()


async def unread_count(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> int:
    """Messages newer than the admin's last read, or than the conversation if never read."""
    conversation, participant = await _participant(conversation_id, identity, uow)
    since = participant.last_read_at or conversation.created_at
    return await uow.messages.count_after(conversation_id, since)
