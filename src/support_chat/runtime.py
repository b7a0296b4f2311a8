"""Process-scoped real-time objects, created once per application."""
from __future__ import annotations

from dataclasses import dataclass

from support_chat.application.ports.auth import SessionDecoder
from support_chat.application.ports.clock import Clock, utcnow
from support_chat.application.ports.renderer import MessageRenderer
from support_chat.application.uow import UoWFactory
from support_chat.config import Settings
from support_chat.infrastructure.auth.session_decoder import (
    HS256SessionDecoder,
    JWKSSessionDecoder,
)
from support_chat.infrastructure.bus.local import InProcessBroadcastBus
from support_chat.infrastructure.rendering.html_renderer import HtmlMessageRenderer
from support_chat.services.conversation_router import ConversationRouter
from support_chat.services.identity_resolver import IdentityResolver
from support_chat.services.presence_channel import PresenceChannel
from support_chat.services.presence_tracker import PresenceTracker


@dataclass(frozen=True, slots=True)
class ChatRuntime:
    bus: InProcessBroadcastBus
    tracker: PresenceTracker
    presence: PresenceChannel
    router: ConversationRouter
    resolver: IdentityResolver
    uow_factory: UoWFactory


def build_session_decoder(cfg: Settings) -> SessionDecoder:
    if cfg.SESSION_VERIFY_MODE == "jwks":
        assert cfg.JWKS_URL, "JWKS_URL must be set when SESSION_VERIFY_MODE=jwks"
        return JWKSSessionDecoder(cfg.JWKS_URL)
    return HS256SessionDecoder(cfg.SESSION_SECRET, cfg.SESSION_ALGORITHM)


def build_runtime(
    cfg: Settings,
    uow_factory: UoWFactory,
    *,
    decoder: SessionDecoder | None = None,
    renderer: MessageRenderer | None = None,
    clock: Clock = utcnow,
) -> ChatRuntime:
    bus = InProcessBroadcastBus()
    tracker = PresenceTracker(clock=clock)
    presence = PresenceChannel(bus, tracker)
    router = ConversationRouter(
        bus,
        tracker,
        presence,
        uow_factory,
        renderer or HtmlMessageRenderer(),
        max_message_length=cfg.MESSAGE_MAX_LENGTH,
    )
    resolver = IdentityResolver(decoder or build_session_decoder(cfg), uow_factory)
    return ChatRuntime(
        bus=bus,
        tracker=tracker,
        presence=presence,
        router=router,
        resolver=resolver,
        uow_factory=uow_factory,
    )
