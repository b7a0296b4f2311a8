"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class SubscribeAction(BaseModel):
    action: Literal["subscribe"]
    conversation_id: int


class UnsubscribeAction(BaseModel):
    action: Literal["unsubscribe"]
    conversation_id: int


class SpeakAction(BaseModel):
    action: Literal["speak"]
    conversation_id: int
    content: str


class TypingAction(BaseModel):
    action: Literal["typing"]
    conversation_id: int


class PresenceSubscribeAction(BaseModel):
    action: Literal["presence.subscribe"]


class PresenceUnsubscribeAction(BaseModel):
    action: Literal["presence.unsubscribe"]


class PingAction(BaseModel):
    action: Literal["ping"]


InboundAction = Annotated[
    Union[
        SubscribeAction,
        UnsubscribeAction,
        SpeakAction,
        TypingAction,
        PresenceSubscribeAction,
        PresenceUnsubscribeAction,
        PingAction,
    ],
    Field(discriminator="action"),
]
"""Client → Server."""

_inbound_adapter: TypeAdapter[InboundAction] = TypeAdapter(InboundAction)


def parse_inbound(raw: str | bytes) -> InboundAction:
    """Raises pydantic.ValidationError for unknown or malformed frames."""
    return _inbound_adapter.validate_json(raw)


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # subscription.confirmed | subscription.rejected | message.created | typing | presence | ...
    topic: str | None = None
    data: dict[str, Any] = {}


def encode(event_type: str, data: dict[str, Any], topic: str | None = None) -> str:
    return WsOutbound(type=event_type, topic=topic, data=data).model_dump_json()
