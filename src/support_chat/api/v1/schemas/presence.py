from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from support_chat.domain.value_objects.enums import PresenceStatus


class PresenceEntryResponse(BaseModel):
    admin_id: int
    admin_name: str
    status: PresenceStatus
    changed_at: datetime
    available: bool = True

    model_config = {"from_attributes": True}


class PresenceListResponse(BaseModel):
    online: list[PresenceEntryResponse]
    count: int
