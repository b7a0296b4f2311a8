from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from support_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from support_chat.application.repositories.identity import AdminReader, CustomerReader
from support_chat.application.repositories.message import MessageReader, MessageWriter
from support_chat.application.repositories.participant import (
    ParticipantReader,
    ParticipantWriter,
)


class UnitOfWork(Protocol):
    customers: CustomerReader
    admins: AdminReader
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants: ParticipantReader
    participants_w: ParticipantWriter
    messages: MessageReader
    messages_w: MessageWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


# Each call opens a fresh unit of work; leaving the block with an exception
# rolls it back.
UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
