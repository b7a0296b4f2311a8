from __future__ import annotations

from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import ConflictError, NotFoundError
from support_chat.application.policies.permissions import (
    assert_admin,
    assert_conversation_access,
)
from support_chat.application.uow import UnitOfWork
from support_chat.domain.entities.conversation import Conversation
from support_chat.domain.value_objects.enums import ConversationStatus


async def _load(conversation_id: int, uow: UnitOfWork) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return conversation


async def assign_conversation(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> Conversation:
    """Add the calling admin as a participant and pick up an open conversation."""
    assert_admin(identity)
    assert identity.admin is not None
    conversation = await _load(conversation_id, uow)

    await uow.participants_w.add(conversation.id, identity.admin.id)
    if conversation.status == ConversationStatus.OPEN:
        await uow.conversations_w.set_status(conversation.id, ConversationStatus.ACTIVE)

    await uow.commit()
    return await _load(conversation_id, uow)


async def resolve_conversation(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> Conversation:
    return await _set_status(conversation_id, ConversationStatus.RESOLVED, identity, uow)


async def close_conversation(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> Conversation:
    return await _set_status(conversation_id, ConversationStatus.CLOSED, identity, uow)


async def _set_status(
    conversation_id: int,
    status: ConversationStatus,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> Conversation:
    """Only a participating admin may change status. ``closed`` is final."""
    assert_admin(identity)
    conversation = await _load(conversation_id, uow)
    assert_conversation_access(ConnectionIdentity(admin=identity.admin), conversation)
    if conversation.status == status:
        return conversation
    if conversation.status == ConversationStatus.CLOSED:
        raise ConflictError("Conversation is already closed")

    await uow.conversations_w.set_status(conversation.id, status)
    await uow.commit()
    return await _load(conversation_id, uow)
