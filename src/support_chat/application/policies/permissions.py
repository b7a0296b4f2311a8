from __future__ import annotations

from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import ForbiddenError, NotFoundError
from support_chat.domain.entities.conversation import Conversation


def acting_identity(
    conversation: Conversation | None,
    identity: ConnectionIdentity | None,
) -> ConnectionIdentity | None:
    """The single identity allowed to act on a conversation, if any.

    The owning customer wins; otherwise a participant admin. A customer that
    does not own the conversation never acts, even when the same connection
    also carries a participant admin.
    """
    if conversation is None or identity is None:
        return None
    if identity.customer is not None and conversation.user_id == identity.customer.id:
        return ConnectionIdentity(customer=identity.customer)
    if identity.admin is not None and conversation.is_participant(identity.admin.id):
        return ConnectionIdentity(admin=identity.admin)
    return None


def can_access(conversation: Conversation | None, identity: ConnectionIdentity | None) -> bool:
    """Owner customer or participant admin may read and write a conversation."""
    return acting_identity(conversation, identity) is not None


def assert_conversation_access(
    identity: ConnectionIdentity,
    conversation: Conversation | None,
) -> Conversation:
    """Raise if conversation doesn't exist or identity has no access."""
    if conversation is None:
        raise NotFoundError("Conversation not found")
    if not can_access(conversation, identity):
        raise ForbiddenError("Not a participant of this conversation")
    return conversation


def assert_acting_identity(
    identity: ConnectionIdentity,
    conversation: Conversation | None,
) -> ConnectionIdentity:
    conversation = assert_conversation_access(identity, conversation)
    actor = acting_identity(conversation, identity)
    assert actor is not None
    return actor


def assert_admin(identity: ConnectionIdentity) -> None:
    if identity.admin is None:
        raise ForbiddenError("Admin access required")


def assert_customer(identity: ConnectionIdentity) -> None:
    if identity.customer is None:
        raise ForbiddenError("Customer access required")
