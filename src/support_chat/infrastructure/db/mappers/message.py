from __future__ import annotations

from support_chat.domain.entities.message import Message, NewMessage
from support_chat.domain.value_objects.enums import SenderKind
from support_chat.infrastructure.db.models.message import MessageModel

# Polymorphic sender_type values written by the storefront.
SENDER_TYPES: dict[SenderKind, str] = {
    SenderKind.CUSTOMER: "User",
    SenderKind.ADMIN: "AdminUser",
}
_KIND_BY_TYPE = {sender_type: kind for kind, sender_type in SENDER_TYPES.items()}


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_kind=_KIND_BY_TYPE[model.sender_type],
        sender_id=model.sender_id,
        content=model.content,
        created_at=model.created_at,
    )


def new_entity_to_model(entity: NewMessage) -> MessageModel:
    return MessageModel(
        conversation_id=entity.conversation_id,
        sender_type=SENDER_TYPES[entity.sender_kind],
        sender_id=entity.sender_id,
        content=entity.content,
    )
