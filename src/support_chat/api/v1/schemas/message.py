from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from support_chat.domain.value_objects.enums import SenderKind


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_kind: SenderKind
    sender_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}
