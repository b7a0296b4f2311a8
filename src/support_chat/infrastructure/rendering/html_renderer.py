from __future__ import annotations

from html import escape

from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SenderKind

# CSS modifier per sender kind, as used by the storefront chat widget.
_SENDER_CLASSES = {
    SenderKind.CUSTOMER: "user",
    SenderKind.ADMIN: "admin",
}


class HtmlMessageRenderer:
    """Render a chat message as the HTML fragment the chat widget appends."""

    def render(self, message: Message, sender_name: str) -> str:
        sender_class = _SENDER_CLASSES[message.sender_kind]
        content = escape(message.content).replace("\n", "<br>")
        return (
            f'<div class="message message--{sender_class}" id="message_{message.id}">'
            f'<div class="message__sender">{escape(sender_name)}</div>'
            f'<div class="message__content">{content}</div>'
            f'<time class="message__time" datetime="{message.created_at.isoformat()}">'
            f'{message.created_at.strftime("%H:%M")}</time>'
            "</div>"
        )
