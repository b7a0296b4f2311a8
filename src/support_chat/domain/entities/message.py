from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from support_chat.domain.value_objects.enums import SenderKind


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    conversation_id: int
    sender_kind: SenderKind
    sender_id: int
    content: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class NewMessage:
    """A message that has not been assigned an id yet."""

    conversation_id: int
    sender_kind: SenderKind
    sender_id: int
    content: str
