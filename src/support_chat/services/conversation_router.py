"""Per-connection conversation subscriptions and client actions."""
from __future__ import annotations

import asyncio
import logging
import weakref
from typing import assert_never

from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    RenderError,
    ValidationError,
)
from support_chat.application.policies.permissions import (
    acting_identity,
    assert_conversation_access,
)
from support_chat.application.ports.bus import BroadcastBus, Subscriber
from support_chat.application.ports.renderer import MessageRenderer
from support_chat.application.uow import UoWFactory
from support_chat.domain.entities.conversation import Conversation, conversation_topic
from support_chat.domain.entities.message import Message
from support_chat.domain.value_objects.enums import SubscriptionState
from support_chat.infrastructure.ws.protocol import (
    InboundAction,
    PingAction,
    PresenceSubscribeAction,
    PresenceUnsubscribeAction,
    SpeakAction,
    SubscribeAction,
    TypingAction,
    UnsubscribeAction,
    encode,
)
from support_chat.services import message_service
from support_chat.services.presence_channel import PresenceChannel
from support_chat.services.presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


class ChatSession:
    """Router state for one connection."""

    def __init__(self, connection: Subscriber, identity: ConnectionIdentity) -> None:
        self.connection = connection
        self.identity = identity
        self.presence_subscribed = False
        # presence references this connection holds on its admin identity
        self.presence_refs = 0
        self._states: dict[int, SubscriptionState] = {}

    @property
    def key(self) -> str:
        return self.connection.key

    def state(self, conversation_id: int) -> SubscriptionState:
        return self._states.get(conversation_id, SubscriptionState.UNSUBSCRIBED)

    def set_state(self, conversation_id: int, state: SubscriptionState) -> None:
        self._states[conversation_id] = state

    def subscribed_conversations(self) -> list[int]:
        return [cid for cid, s in self._states.items() if s == SubscriptionState.SUBSCRIBED]


class ConversationRouter:
    def __init__(
        self,
        bus: BroadcastBus,
        tracker: PresenceTracker,
        presence: PresenceChannel,
        uow_factory: UoWFactory,
        renderer: MessageRenderer,
        *,
        max_message_length: int = message_service.MESSAGE_MAX_LENGTH,
    ) -> None:
        self._bus = bus
        self._tracker = tracker
        self._presence = presence
        self._uow_factory = uow_factory
        self._renderer = renderer
        self._max_message_length = max_message_length
        # Serializes persist+broadcast per conversation so subscribers see
        # messages in insert order. Idle locks are collected.
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def open_session(self, connection: Subscriber, identity: ConnectionIdentity) -> ChatSession:
        return ChatSession(connection, identity)

    async def dispatch(self, session: ChatSession, action: InboundAction) -> None:
        match action:
            case SubscribeAction(conversation_id=conversation_id):
                await self.subscribe(session, conversation_id)
            case UnsubscribeAction(conversation_id=conversation_id):
                await self.unsubscribe(session, conversation_id)
            case SpeakAction(conversation_id=conversation_id, content=content):
                await self.speak(session, conversation_id, content)
            case TypingAction(conversation_id=conversation_id):
                await self.typing(session, conversation_id)
            case PresenceSubscribeAction():
                await self.subscribe_presence(session)
            case PresenceUnsubscribeAction():
                await self.unsubscribe_presence(session)
            case PingAction():
                session.connection.deliver(encode("pong", {}))
            case _:
                assert_never(action)

    async def subscribe(self, session: ChatSession, conversation_id: int) -> bool:
        topic = conversation_topic(conversation_id)
        if session.state(conversation_id) == SubscriptionState.SUBSCRIBED:
            self._reply(session, "subscription.confirmed", conversation_id)
            return True

        try:
            async with self._uow_factory() as uow:
                conversation = await uow.conversations.get_by_id(conversation_id)
            assert_conversation_access(session.identity, conversation)
        except (NotFoundError, ForbiddenError) as exc:
            # Same reply for both so existence is not leaked.
            logger.debug("Subscription to %s rejected for %s: %s", topic, session.key, exc.detail)
            self._reply(session, "subscription.rejected", conversation_id)
            return False
        except PersistenceError:
            logger.warning("Subscription lookup for %s failed", topic, exc_info=True)
            self._reply(session, "subscription.rejected", conversation_id)
            return False

        await self._bus.subscribe(topic, session.connection)
        session.set_state(conversation_id, SubscriptionState.SUBSCRIBED)
        self._reply(session, "subscription.confirmed", conversation_id)

        admin = session.identity.admin
        if admin is not None:
            # Counted before the await: the shielded call always completes,
            # so close_session releases exactly what was taken.
            session.presence_refs += 1
            await asyncio.shield(self._tracker.mark_online(admin))
        return True

    async def unsubscribe(self, session: ChatSession, conversation_id: int) -> bool:
        if session.state(conversation_id) != SubscriptionState.SUBSCRIBED:
            return False

        await self._bus.unsubscribe(conversation_topic(conversation_id), session.connection)
        session.set_state(conversation_id, SubscriptionState.TERMINATED)
        await self._release_presence(session, 1)
        return True

    async def speak(self, session: ChatSession, conversation_id: int, content: str) -> Message | None:
        """Persist, render, commit, then broadcast.

        Any refusal or failure is a silent no-op for the client: nothing is
        committed or broadcast and the subscription stays in place.
        """
        if session.state(conversation_id) != SubscriptionState.SUBSCRIBED:
            logger.debug("speak on %d ignored: %s not subscribed", conversation_id, session.key)
            return None

        topic = conversation_topic(conversation_id)
        async with self._lock_for(conversation_id):
            try:
                async with self._uow_factory() as uow:
                    message, sender = await message_service.append_message(
                        conversation_id,
                        session.identity,
                        content,
                        uow,
                        max_length=self._max_message_length,
                    )
                    rendered = self._render(message, sender)
                    await uow.commit()
            except (NotFoundError, ForbiddenError, ValidationError) as exc:
                logger.debug("speak on %s dropped for %s: %s", topic, session.key, exc.detail)
                return None
            except (PersistenceError, RenderError):
                logger.warning("speak on %s failed, nothing committed", topic, exc_info=True)
                return None

            await self._bus.publish(
                topic,
                "message.created",
                {
                    "message": rendered,
                    "message_id": message.id,
                    "conversation_id": message.conversation_id,
                    "sender_id": message.sender_id,
                    "sender_kind": message.sender_kind.value,
                },
            )
        return message

    async def typing(self, session: ChatSession, conversation_id: int) -> bool:
        if session.state(conversation_id) != SubscriptionState.SUBSCRIBED:
            return False

        try:
            async with self._uow_factory() as uow:
                conversation = await uow.conversations.get_by_id(conversation_id)
        except PersistenceError:
            logger.debug("typing lookup for %d failed", conversation_id, exc_info=True)
            return False
        actor = acting_identity(conversation, session.identity)
        if actor is None:
            return False

        await self._bus.publish(
            conversation_topic(conversation_id),
            "typing",
            {
                "typing": True,
                "sender_id": actor.sender_id,
                "sender_kind": actor.sender_kind.value,
            },
        )
        return True

    async def subscribe_presence(self, session: ChatSession) -> None:
        if session.presence_subscribed:
            return
        await self._presence.subscribe(session.connection)
        session.presence_subscribed = True

    async def unsubscribe_presence(self, session: ChatSession) -> None:
        if not session.presence_subscribed:
            return
        await self._presence.unsubscribe(session.connection)
        session.presence_subscribed = False

    async def close_session(self, session: ChatSession) -> None:
        """Tear down every subscription of a disconnected connection."""
        held = session.subscribed_conversations()
        # One critical section: in-flight publishes either see the
        # connection in every topic or in none.
        await self._bus.unsubscribe_all(session.connection)
        for conversation_id in held:
            session.set_state(conversation_id, SubscriptionState.TERMINATED)
        session.presence_subscribed = False

        await self._release_presence(session, session.presence_refs)
        logger.debug("Session %s closed (%d conversations)", session.key, len(held))

    async def announce_status(self, conversation: Conversation) -> int:
        """Tell subscribers of a conversation that its status changed."""
        return await self._bus.publish(
            conversation.topic,
            "conversation.updated",
            {"conversation_id": conversation.id, "status": conversation.status.value},
        )

    def _render(self, message: Message, sender: ConnectionIdentity) -> str:
        try:
            return self._renderer.render(message, sender.sender_name)
        except Exception as exc:
            raise RenderError(f"Cannot render message {message.id}") from exc

    async def _release_presence(self, session: ChatSession, count: int) -> None:
        admin = session.identity.admin
        if admin is None:
            return
        count = min(count, session.presence_refs)
        for _ in range(count):
            session.presence_refs -= 1
            await asyncio.shield(self._tracker.mark_offline(admin))

    def _lock_for(self, conversation_id: int) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    @staticmethod
    def _reply(session: ChatSession, event_type: str, conversation_id: int) -> None:
        session.connection.deliver(
            encode(
                event_type,
                {"conversation_id": conversation_id},
                topic=conversation_topic(conversation_id),
            )
        )
