from __future__ import annotations

from datetime import datetime
from typing import Protocol

from support_chat.application.dto.conversation import ConversationFilterDTO
from support_chat.domain.entities.conversation import Conversation, NewConversation
from support_chat.domain.value_objects.enums import ConversationStatus


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        """Load a conversation together with its participant admin ids."""
        ...

    async def list_for_user(self, user_id: int, *, limit: int = 20) -> list[Conversation]:
        """Most recently updated first."""
        ...

    async def list_for_admin(self, filters: ConversationFilterDTO) -> list[Conversation]: ...


class ConversationWriter(Protocol):
    async def create(self, conversation: NewConversation) -> Conversation: ...

    async def set_status(
        self, conversation_id: int, status: ConversationStatus
    ) -> None: ...

    async def touch_last_message_at(
        self, conversation_id: int, ts: datetime
    ) -> None: ...
