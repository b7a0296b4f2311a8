from __future__ import annotations

from fastapi import APIRouter, Query, status

from support_chat.api.deps import CurrentAdmin, RuntimeDep, UoWDep
from support_chat.api.v1.schemas.conversation import ConversationResponse, UnreadCountResponse
from support_chat.domain.value_objects.enums import ConversationStatus
from support_chat.services import admin_service, conversation_service, read_state_service

router = APIRouter(prefix="/api/v1/chat/admin/conversations", tags=["admin"])


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    admin: CurrentAdmin,
    uow: UoWDep,
    status_filter: ConversationStatus | None = Query(None, alias="status"),
    mine: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> list[ConversationResponse]:
    convs = await conversation_service.list_admin_conversations(
        admin, status_filter, mine, limit, uow,
    )
    return [ConversationResponse.model_validate(c, from_attributes=True) for c in convs]


@router.post("/{conversation_id}/assign", response_model=ConversationResponse)
async def assign_conversation(
    conversation_id: int,
    admin: CurrentAdmin,
    uow: UoWDep,
    runtime: RuntimeDep,
) -> ConversationResponse:
    conv = await admin_service.assign_conversation(conversation_id, admin, uow)
    await runtime.router.announce_status(conv)
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.post("/{conversation_id}/resolve", response_model=ConversationResponse)
async def resolve_conversation(
    conversation_id: int,
    admin: CurrentAdmin,
    uow: UoWDep,
    runtime: RuntimeDep,
) -> ConversationResponse:
    conv = await admin_service.resolve_conversation(conversation_id, admin, uow)
    await runtime.router.announce_status(conv)
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.post("/{conversation_id}/close", response_model=ConversationResponse)
async def close_conversation(
    conversation_id: int,
    admin: CurrentAdmin,
    uow: UoWDep,
    runtime: RuntimeDep,
) -> ConversationResponse:
    conv = await admin_service.close_conversation(conversation_id, admin, uow)
    await runtime.router.announce_status(conv)
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.post("/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    conversation_id: int,
    admin: CurrentAdmin,
    uow: UoWDep,
) -> None:
    await read_state_service.mark_read(conversation_id, admin, uow)


@router.get("/{conversation_id}/unread", response_model=UnreadCountResponse)
async def unread_count(
    conversation_id: int,
    admin: CurrentAdmin,
    uow: UoWDep,
) -> UnreadCountResponse:
    unread = await read_state_service.unread_count(conversation_id, admin, uow)
    return UnreadCountResponse(conversation_id=conversation_id, unread=unread)
