from __future__ import annotations

from fastapi import APIRouter, Query

from support_chat.api.deps import CurrentIdentity, UoWDep
from support_chat.api.v1.schemas.message import MessageResponse
from support_chat.application.dto.conversation import MessagePageDTO
from support_chat.services import message_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: int,
    identity: CurrentIdentity,
    uow: UoWDep,
    after_id: int | None = Query(None, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> list[MessageResponse]:
    messages = await message_service.list_messages(
        conversation_id, identity, MessagePageDTO(after_id=after_id, limit=limit), uow,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]
