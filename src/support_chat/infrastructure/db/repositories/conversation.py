from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from support_chat.application.dto.conversation import ConversationFilterDTO
from support_chat.domain.entities.conversation import Conversation, NewConversation
from support_chat.domain.value_objects.enums import ConversationStatus
from support_chat.infrastructure.db.mappers import conversation as mapper
from support_chat.infrastructure.db.models.conversation import ConversationModel
from support_chat.infrastructure.db.models.participant import ParticipantModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        # participants can change between actions; never trust the identity map
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .options(selectinload(ConversationModel.participants))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: int, *, limit: int = 20) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.user_id == user_id)
            .options(selectinload(ConversationModel.participants))
            .order_by(ConversationModel.updated_at.desc(), ConversationModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_admin(self, filters: ConversationFilterDTO) -> list[Conversation]:
        codes = [mapper.status_to_code(s) for s in filters.statuses]
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.status.in_(codes))
            .options(selectinload(ConversationModel.participants))
            .order_by(ConversationModel.updated_at.desc(), ConversationModel.id.desc())
            .limit(filters.limit)
        )
        if filters.participant_admin_id is not None:
            stmt = stmt.join(
                ParticipantModel,
                ParticipantModel.conversation_id == ConversationModel.id,
            ).where(ParticipantModel.admin_user_id == filters.participant_admin_id)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: NewConversation) -> Conversation:
        stmt = (
            insert(ConversationModel)
            .values(
                user_id=conversation.user_id,
                subject=conversation.subject,
                status=mapper.status_to_code(conversation.status),
            )
            .returning(ConversationModel.id)
        )
        result = await self._session.execute(stmt)
        created = await ConversationReaderRepo(self._session).get_by_id(result.scalar_one())
        assert created is not None
        return created

    async def set_status(
        self,
        conversation_id: int,
        status: ConversationStatus,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(status=mapper.status_to_code(status), updated_at=func.now())
        )
        await self._session.execute(stmt)

    async def touch_last_message_at(
        self,
        conversation_id: int,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(last_message_at=ts)
        )
        await self._session.execute(stmt)
