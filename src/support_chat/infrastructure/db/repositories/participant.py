from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from support_chat.domain.entities.participant import Participant
from support_chat.infrastructure.db.mappers import participant as mapper
from support_chat.infrastructure.db.models.participant import ParticipantModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, conversation_id: int, admin_user_id: int) -> Participant | None:
        result = await self._session.execute(
            select(ParticipantModel)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.admin_user_id == admin_user_id,
            )
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, conversation_id: int, admin_user_id: int) -> Participant:
        """Insert the participant row unless it already exists."""
        stmt = (
            pg_insert(ParticipantModel)
            .values(conversation_id=conversation_id, admin_user_id=admin_user_id)
            .on_conflict_do_nothing(constraint="index_participants_on_conversation_and_admin")
        )
        await self._session.execute(stmt)
        participant = await ParticipantReaderRepo(self._session).get(conversation_id, admin_user_id)
        assert participant is not None
        return participant

    async def mark_read(self, conversation_id: int, admin_user_id: int, ts: datetime) -> None:
        stmt = (
            update(ParticipantModel)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.admin_user_id == admin_user_id,
            )
            .values(last_read_at=ts)
        )
        await self._session.execute(stmt)
