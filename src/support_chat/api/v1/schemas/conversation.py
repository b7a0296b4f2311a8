from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from support_chat.domain.value_objects.enums import ConversationStatus


class CreateConversationRequest(BaseModel):
    subject: str | None = None
    initial_message: str | None = None


class ConversationResponse(BaseModel):
    id: int
    user_id: int
    status: ConversationStatus
    subject: str | None
    participant_admin_ids: list[int]
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    conversation_id: int
    unread: int
