from __future__ import annotations

from support_chat.application.dto.conversation import MessagePageDTO
from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import ValidationError
from support_chat.application.policies.permissions import (
    assert_acting_identity,
    assert_conversation_access,
)
from support_chat.application.uow import UnitOfWork
from support_chat.domain.entities.message import Message, NewMessage
from support_chat.domain.value_objects.enums import ConversationStatus, SenderKind

MESSAGE_MAX_LENGTH = 5000


def validate_content(content: str, max_length: int = MESSAGE_MAX_LENGTH) -> str:
    if not content or not content.strip():
        raise ValidationError("Message content can't be blank")
    if len(content) > max_length:
        raise ValidationError(f"Message content is too long (maximum is {max_length} characters)")
    return content


async def append_message(
    conversation_id: int,
    identity: ConnectionIdentity,
    content: str,
    uow: UnitOfWork,
    *,
    max_length: int = MESSAGE_MAX_LENGTH,
) -> tuple[Message, ConnectionIdentity]:
    """Write a message without committing.

    The conversation is reloaded and access re-checked on every call, since
    participants can change while a connection stays subscribed. The sender
    is the identity that passed the check, so a dual identity writes as the
    owning customer or else as the participant admin. An admin reply moves an
    ``open`` conversation to ``active``.

    Returns (message, sender).
    """
    conversation = await uow.conversations.get_by_id(conversation_id)
    sender = assert_acting_identity(identity, conversation)
    assert conversation is not None
    content = validate_content(content, max_length)

    message = await uow.messages_w.create(
        NewMessage(
            conversation_id=conversation.id,
            sender_kind=sender.sender_kind,
            sender_id=sender.sender_id,
            content=content,
        )
    )
    await uow.conversations_w.touch_last_message_at(conversation.id, message.created_at)

    if sender.sender_kind == SenderKind.ADMIN and conversation.status == ConversationStatus.OPEN:
        await uow.conversations_w.set_status(conversation.id, ConversationStatus.ACTIVE)
    return message, sender


async def list_messages(
    conversation_id: int,
    identity: ConnectionIdentity,
    page: MessagePageDTO,
    uow: UnitOfWork,
) -> list[Message]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(identity, conversation)
    return await uow.messages.list_messages(
        conversation_id, after_id=page.after_id, limit=page.limit,
    )
