from __future__ import annotations

from typing import Protocol

from support_chat.domain.entities.message import Message


class MessageRenderer(Protocol):
    def render(self, message: Message, sender_name: str) -> str:
        """Return an opaque markup fragment for a chat message."""
        ...
