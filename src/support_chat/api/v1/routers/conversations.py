from __future__ import annotations

from fastapi import APIRouter, Query, status

from support_chat.api.deps import CurrentIdentity, UoWDep
from support_chat.api.v1.schemas.conversation import (
    ConversationResponse,
    CreateConversationRequest,
)
from support_chat.config import settings
from support_chat.services import conversation_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def start_conversation(
    body: CreateConversationRequest,
    identity: CurrentIdentity,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.start_conversation(
        identity, body.subject, body.initial_message, uow,
        max_length=settings.MESSAGE_MAX_LENGTH,
    )
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    identity: CurrentIdentity,
    uow: UoWDep,
    limit: int = Query(20, ge=1, le=100),
) -> list[ConversationResponse]:
    convs = await conversation_service.list_customer_conversations(identity, limit, uow)
    return [ConversationResponse.model_validate(c, from_attributes=True) for c in convs]


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: int,
    identity: CurrentIdentity,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_conversation(conversation_id, identity, uow)
    return ConversationResponse.model_validate(conv, from_attributes=True)
