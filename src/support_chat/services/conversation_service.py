from __future__ import annotations

from support_chat.application.dto.conversation import UNRESOLVED_STATUSES, ConversationFilterDTO
from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import NotFoundError, ValidationError
from support_chat.application.policies.permissions import (
    assert_admin,
    assert_conversation_access,
    assert_customer,
)
from support_chat.application.uow import UnitOfWork
from support_chat.domain.entities.conversation import Conversation, NewConversation
from support_chat.domain.entities.message import NewMessage
from support_chat.domain.value_objects.enums import ConversationStatus, SenderKind
from support_chat.services.message_service import MESSAGE_MAX_LENGTH, validate_content

SUBJECT_MAX_LENGTH = 255


async def start_conversation(
    identity: ConnectionIdentity,
    subject: str | None,
    initial_message: str | None,
    uow: UnitOfWork,
    *,
    max_length: int = MESSAGE_MAX_LENGTH,
) -> Conversation:
    """Open a new conversation for the calling customer.

    A non-blank ``initial_message`` is stored as the first message in the
    same transaction.
    """
    assert_customer(identity)
    assert identity.customer is not None
    subject = (subject or "").strip() or None
    if subject is not None and len(subject) > SUBJECT_MAX_LENGTH:
        raise ValidationError(f"Subject is too long (maximum is {SUBJECT_MAX_LENGTH} characters)")
    if initial_message is not None and initial_message.strip():
        initial_message = validate_content(initial_message, max_length)
    else:
        initial_message = None

    conversation = await uow.conversations_w.create(
        NewConversation(user_id=identity.customer.id, subject=subject)
    )
    if initial_message is not None:
        message = await uow.messages_w.create(
            NewMessage(
                conversation_id=conversation.id,
                sender_kind=SenderKind.CUSTOMER,
                sender_id=identity.customer.id,
                content=initial_message,
            )
        )
        await uow.conversations_w.touch_last_message_at(conversation.id, message.created_at)

    await uow.commit()
    created = await uow.conversations.get_by_id(conversation.id)
    if created is None:
        raise NotFoundError("Conversation not found")
    return created


async def list_customer_conversations(
    identity: ConnectionIdentity,
    limit: int,
    uow: UnitOfWork,
) -> list[Conversation]:
    assert_customer(identity)
    assert identity.customer is not None
    return await uow.conversations.list_for_user(identity.customer.id, limit=limit)


async def list_admin_conversations(
    identity: ConnectionIdentity,
    status: ConversationStatus | None,
    mine: bool,
    limit: int,
    uow: UnitOfWork,
) -> list[Conversation]:
    """Admin inbox. Without a status filter only unresolved conversations are listed."""
    assert_admin(identity)
    assert identity.admin is not None
    filters = ConversationFilterDTO(
        statuses=(status,) if status is not None else UNRESOLVED_STATUSES,
        participant_admin_id=identity.admin.id if mine else None,
        limit=limit,
    )
    return await uow.conversations.list_for_admin(filters)


async def get_conversation(
    conversation_id: int,
    identity: ConnectionIdentity,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    return assert_conversation_access(identity, conversation)
