from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from support_chat.domain.entities.message import Message, NewMessage
from support_chat.infrastructure.db.mappers import message as mapper
from support_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(
        self,
        conversation_id: int,
        *,
        after_id: int | None = None,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.id.asc())
            .limit(limit)
        )
        if after_id is not None:
            stmt = stmt.where(MessageModel.id > after_id)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def count_after(self, conversation_id: int, ts: datetime) -> int:
        stmt = select(func.count(MessageModel.id)).where(
            MessageModel.conversation_id == conversation_id,
            MessageModel.created_at > ts,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: NewMessage) -> Message:
        model = mapper.new_entity_to_model(message)
        stmt = (
            insert(MessageModel)
            .values(
                conversation_id=model.conversation_id,
                sender_type=model.sender_type,
                sender_id=model.sender_id,
                content=model.content,
            )
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())
