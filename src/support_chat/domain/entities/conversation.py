from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from support_chat.domain.value_objects.enums import ConversationStatus


@dataclass(frozen=True, slots=True)
class Conversation:
    id: int
    user_id: int
    status: ConversationStatus
    subject: str | None
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime
    participant_admin_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def topic(self) -> str:
        return conversation_topic(self.id)

    def is_participant(self, admin_id: int) -> bool:
        return admin_id in self.participant_admin_ids


def conversation_topic(conversation_id: int) -> str:
    """Broadcast topic name for a conversation."""
    return f"conversation:{conversation_id}"


@dataclass(frozen=True, slots=True)
class NewConversation:
    """A conversation a customer is starting; the store assigns id and timestamps."""

    user_id: int
    subject: str | None
    status: ConversationStatus = ConversationStatus.OPEN
