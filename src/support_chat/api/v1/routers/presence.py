from __future__ import annotations

from fastapi import APIRouter

from support_chat.api.deps import CurrentAdmin, CurrentIdentity, RuntimeDep
from support_chat.api.v1.schemas.presence import PresenceEntryResponse, PresenceListResponse

router = APIRouter(prefix="/api/v1/chat/presence", tags=["presence"])


@router.get("", response_model=PresenceListResponse)
async def list_online_admins(
    _identity: CurrentIdentity,
    runtime: RuntimeDep,
) -> PresenceListResponse:
    online = await runtime.tracker.list_online()
    return PresenceListResponse(
        online=[PresenceEntryResponse.model_validate(e, from_attributes=True) for e in online],
        count=len(online),
    )


@router.post("/availability", response_model=PresenceEntryResponse)
async def toggle_availability(
    admin: CurrentAdmin,
    runtime: RuntimeDep,
) -> PresenceEntryResponse:
    assert admin.admin is not None
    entry = await runtime.tracker.toggle_availability(admin.admin)
    return PresenceEntryResponse.model_validate(entry, from_attributes=True)
