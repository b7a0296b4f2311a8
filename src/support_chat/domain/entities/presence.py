from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from support_chat.domain.value_objects.enums import PresenceStatus


@dataclass(frozen=True, slots=True)
class PresenceEntry:
    admin_id: int
    admin_name: str
    status: PresenceStatus
    changed_at: datetime
    connections: int = 0
    # cleared by the admin to appear offline while connected
    available: bool = True

    @property
    def is_online(self) -> bool:
        return self.status == PresenceStatus.ONLINE

    def as_payload(self) -> dict[str, object]:
        return {
            "admin_id": self.admin_id,
            "status": self.status.value,
            "admin_name": self.admin_name,
        }
