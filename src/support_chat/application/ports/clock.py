from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Default wall-clock implementation."""
    return datetime.now(timezone.utc)
