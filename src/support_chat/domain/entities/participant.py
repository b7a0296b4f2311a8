from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Participant:
    conversation_id: int
    admin_user_id: int
    last_read_at: datetime | None
    created_at: datetime
