"""Shared test fixtures."""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import pytest

from support_chat.application.dto.conversation import ConversationFilterDTO
from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.exceptions import PersistenceError
from support_chat.config import settings
from support_chat.domain.entities.conversation import Conversation, NewConversation
from support_chat.domain.entities.identity import AdminUser, Customer
from support_chat.domain.entities.message import Message, NewMessage
from support_chat.domain.entities.participant import Participant
from support_chat.domain.value_objects.enums import ConversationStatus
from support_chat.infrastructure.auth.session_decoder import HS256SessionDecoder
from support_chat.runtime import ChatRuntime, build_runtime

OWNER = Customer(id=42, email="owner@example.com", first_name="Olga", last_name="Owner")
STRANGER = Customer(id=43, email="stranger@example.com")
ADMIN = AdminUser(id=1, email="admin@example.com")
OTHER_ADMIN = AdminUser(id=2, email="other-admin@example.com")

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_token(
    *,
    customer_id: Any = None,
    admin_id: Any = None,
    secret: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    claims: dict[str, Any] = {}
    if customer_id is not None:
        claims["customer_id"] = customer_id
    if admin_id is not None:
        claims["admin_id"] = admin_id
    if expires_in is not None:
        claims["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(claims, secret or settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def make_conversation(
    *,
    conversation_id: int = 100,
    user_id: int = OWNER.id,
    status: ConversationStatus = ConversationStatus.OPEN,
    participant_admin_ids: frozenset[int] = frozenset(),
) -> Conversation:
    return Conversation(
        id=conversation_id,
        user_id=user_id,
        status=status,
        subject="Where is my order?",
        last_message_at=None,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
        participant_admin_ids=participant_admin_ids,
    )


@dataclass
class FakeStore:
    """Shared in-memory state behind every fake repository."""

    customers: dict[int, Customer] = field(default_factory=dict)
    admins: dict[int, AdminUser] = field(default_factory=dict)
    conversations: dict[int, Conversation] = field(default_factory=dict)
    participants: list[Participant] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    fail_writes: bool = False

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations[conversation.id] = replace(conversation, participant_admin_ids=frozenset())
        for admin_id in conversation.participant_admin_ids:
            self.add_participant(conversation.id, admin_id)
        return conversation

    def add_participant(self, conversation_id: int, admin_id: int) -> Participant:
        for p in self.participants:
            if p.conversation_id == conversation_id and p.admin_user_id == admin_id:
                return p
        participant = Participant(
            conversation_id=conversation_id,
            admin_user_id=admin_id,
            last_read_at=None,
            created_at=datetime.now(timezone.utc),
        )
        self.participants.append(participant)
        return participant

    def messages_for(self, conversation_id: int) -> list[Message]:
        return [m for m in self.messages if m.conversation_id == conversation_id]


@dataclass
class FakeCustomerReader:
    _store: FakeStore

    async def get_by_id(self, customer_id: int) -> Customer | None:
        return self._store.customers.get(customer_id)


@dataclass
class FakeAdminReader:
    _store: FakeStore

    async def get_by_id(self, admin_id: int) -> AdminUser | None:
        return self._store.admins.get(admin_id)


@dataclass
class FakeConversationReader:
    _store: FakeStore

    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        conversation = self._store.conversations.get(conversation_id)
        if conversation is None:
            return None
        return replace(conversation, participant_admin_ids=self._admin_ids(conversation_id))

    async def list_for_user(self, user_id: int, *, limit: int = 20) -> list[Conversation]:
        return self._recent(lambda c: c.user_id == user_id)[:limit]

    async def list_for_admin(self, filters: ConversationFilterDTO) -> list[Conversation]:
        found = self._recent(lambda c: c.status in filters.statuses)
        if filters.participant_admin_id is not None:
            found = [c for c in found if c.is_participant(filters.participant_admin_id)]
        return found[:filters.limit]

    def _recent(self, predicate) -> list[Conversation]:
        loaded = [
            replace(c, participant_admin_ids=self._admin_ids(c.id))
            for c in self._store.conversations.values()
        ]
        matching = [c for c in loaded if predicate(c)]
        return sorted(matching, key=lambda c: (c.updated_at, c.id), reverse=True)

    def _admin_ids(self, conversation_id: int) -> frozenset[int]:
        return frozenset(
            p.admin_user_id for p in self._store.participants if p.conversation_id == conversation_id
        )


@dataclass
class FakeConversationWriter:
    _store: FakeStore

    async def create(self, conversation: NewConversation) -> Conversation:
        if self._store.fail_writes:
            raise PersistenceError("insert rejected")
        now = datetime.now(timezone.utc)
        created = Conversation(
            id=max(self._store.conversations, default=0) + 1,
            user_id=conversation.user_id,
            status=conversation.status,
            subject=conversation.subject,
            last_message_at=None,
            created_at=now,
            updated_at=now,
        )
        self._store.conversations[created.id] = created
        return created

    async def set_status(self, conversation_id: int, status: ConversationStatus) -> None:
        if self._store.fail_writes:
            raise PersistenceError("status update rejected")
        current = self._store.conversations[conversation_id]
        self._store.conversations[conversation_id] = replace(current, status=status)

    async def touch_last_message_at(self, conversation_id: int, ts: datetime) -> None:
        current = self._store.conversations[conversation_id]
        self._store.conversations[conversation_id] = replace(current, last_message_at=ts)


@dataclass
class FakeParticipantReader:
    _store: FakeStore

    async def get(self, conversation_id: int, admin_user_id: int) -> Participant | None:
        for p in self._store.participants:
            if p.conversation_id == conversation_id and p.admin_user_id == admin_user_id:
                return p
        return None


@dataclass
class FakeParticipantWriter:
    _store: FakeStore

    async def add(self, conversation_id: int, admin_user_id: int) -> Participant:
        return self._store.add_participant(conversation_id, admin_user_id)

    async def mark_read(self, conversation_id: int, admin_user_id: int, ts: datetime) -> None:
        if self._store.fail_writes:
            raise PersistenceError("update rejected")
        self._store.participants[:] = [
            replace(p, last_read_at=ts)
            if p.conversation_id == conversation_id and p.admin_user_id == admin_user_id
            else p
            for p in self._store.participants
        ]


@dataclass
class FakeMessageReader:
    _store: FakeStore

    async def list_messages(
        self, conversation_id: int, *, after_id: int | None = None, limit: int = 50,
    ) -> list[Message]:
        messages = [
            m for m in self._store.messages_for(conversation_id)
            if after_id is None or m.id > after_id
        ]
        return messages[:limit]

    async def count_after(self, conversation_id: int, ts: datetime) -> int:
        return sum(1 for m in self._store.messages_for(conversation_id) if m.created_at > ts)


@dataclass
class FakeMessageWriter:
    _store: FakeStore

    async def create(self, message: NewMessage) -> Message:
        if self._store.fail_writes:
            raise PersistenceError("insert rejected")
        created = Message(
            id=len(self._store.messages) + 1,
            conversation_id=message.conversation_id,
            sender_kind=message.sender_kind,
            sender_id=message.sender_id,
            content=message.content,
            created_at=datetime.now(timezone.utc),
        )
        self._store.messages.append(created)
        return created


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests. Usable as its own factory."""

    store: FakeStore = field(default_factory=FakeStore)
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        self.customers = FakeCustomerReader(self.store)
        self.admins = FakeAdminReader(self.store)
        self.conversations = FakeConversationReader(self.store)
        self.conversations_w = FakeConversationWriter(self.store)
        self.participants = FakeParticipantReader(self.store)
        self.participants_w = FakeParticipantWriter(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)
        self._checkpoint()

    def _checkpoint(self) -> None:
        self._saved = (
            dict(self.store.conversations),
            list(self.store.participants),
            list(self.store.messages),
        )

    async def commit(self) -> None:
        self.commits += 1
        self._checkpoint()

    async def rollback(self) -> None:
        self.rollbacks += 1
        conversations, participants, messages = self._saved
        self.store.conversations.clear()
        self.store.conversations.update(conversations)
        self.store.participants[:] = participants
        self.store.messages[:] = messages

    async def __aenter__(self) -> FakeUoW:
        self._checkpoint()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()

    def __call__(self) -> FakeUoW:
        return self


class RecordingSubscriber:
    """Stands in for a WebSocket connection; keeps every frame it is handed."""

    def __init__(self, key: str = "conn") -> None:
        self.key = key
        self.frames: list[dict[str, Any]] = []

    def deliver(self, raw: str) -> None:
        self.frames.append(json.loads(raw))

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [f for f in self.frames if f["type"] == event_type]

    def clear(self) -> None:
        self.frames.clear()

    def __repr__(self) -> str:
        return f"RecordingSubscriber({self.key!r})"


class BrokenSubscriber(RecordingSubscriber):
    def deliver(self, raw: str) -> None:
        raise RuntimeError("socket gone")


class FakeRenderer:
    def render(self, message: Message, sender_name: str) -> str:
        return f"<p data-sender='{sender_name}'>{message.content}</p>"


class FailingRenderer:
    def render(self, message: Message, sender_name: str) -> str:
        raise KeyError("template missing")


@pytest.fixture
def store() -> FakeStore:
    store = FakeStore()
    for customer in (OWNER, STRANGER):
        store.customers[customer.id] = customer
    for admin in (ADMIN, OTHER_ADMIN):
        store.admins[admin.id] = admin
    return store


@pytest.fixture
def uow(store: FakeStore) -> FakeUoW:
    return FakeUoW(store=store)


@pytest.fixture
def conversation(store: FakeStore) -> Conversation:
    return store.add_conversation(make_conversation())


@pytest.fixture
def owner_identity() -> ConnectionIdentity:
    return ConnectionIdentity(customer=OWNER)


@pytest.fixture
def stranger_identity() -> ConnectionIdentity:
    return ConnectionIdentity(customer=STRANGER)


@pytest.fixture
def admin_identity() -> ConnectionIdentity:
    return ConnectionIdentity(admin=ADMIN)


@pytest.fixture
def other_admin_identity() -> ConnectionIdentity:
    return ConnectionIdentity(admin=OTHER_ADMIN)


@pytest.fixture
def runtime(uow: FakeUoW) -> ChatRuntime:
    return build_runtime(
        settings,
        uow,
        decoder=HS256SessionDecoder(settings.SESSION_SECRET, settings.SESSION_ALGORITHM),
        renderer=FakeRenderer(),
        clock=lambda: FIXED_NOW,
    )
