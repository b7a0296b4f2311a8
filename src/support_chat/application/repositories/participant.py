from __future__ import annotations

from datetime import datetime
from typing import Protocol

from support_chat.domain.entities.participant import Participant


class ParticipantReader(Protocol):
    async def get(self, conversation_id: int, admin_user_id: int) -> Participant | None: ...


class ParticipantWriter(Protocol):
    async def add(self, conversation_id: int, admin_user_id: int) -> Participant: ...

    async def mark_read(self, conversation_id: int, admin_user_id: int, ts: datetime) -> None: ...
