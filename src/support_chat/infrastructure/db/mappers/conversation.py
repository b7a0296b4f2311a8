from __future__ import annotations

from support_chat.domain.entities.conversation import Conversation
from support_chat.domain.value_objects.enums import ConversationStatus
from support_chat.infrastructure.db.models.conversation import ConversationModel

STATUS_CODES: dict[ConversationStatus, int] = {
    ConversationStatus.OPEN: 0,
    ConversationStatus.ACTIVE: 1,
    ConversationStatus.RESOLVED: 2,
    ConversationStatus.CLOSED: 3,
}
_STATUS_BY_CODE = {code: status for status, code in STATUS_CODES.items()}


def status_from_code(code: int) -> ConversationStatus:
    return _STATUS_BY_CODE[code]


def status_to_code(status: ConversationStatus) -> int:
    return STATUS_CODES[status]


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        user_id=model.user_id,
        status=status_from_code(model.status),
        subject=model.subject,
        last_message_at=model.last_message_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        participant_admin_ids=frozenset(p.admin_user_id for p in model.participants),
    )
