from __future__ import annotations

from datetime import datetime
from typing import Protocol

from support_chat.domain.entities.message import Message, NewMessage


class MessageReader(Protocol):
    async def list_messages(
        self,
        conversation_id: int,
        *,
        after_id: int | None = None,
        limit: int = 50,
    ) -> list[Message]: ...

    async def count_after(self, conversation_id: int, ts: datetime) -> int:
        """Messages created strictly after ``ts``."""
        ...


class MessageWriter(Protocol):
    async def create(self, message: NewMessage) -> Message:
        """Append a message; the store assigns a monotonically increasing id."""
        ...
