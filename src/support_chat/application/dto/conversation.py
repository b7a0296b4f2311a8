from __future__ import annotations

from dataclasses import dataclass

from support_chat.domain.value_objects.enums import ConversationStatus

UNRESOLVED_STATUSES = (ConversationStatus.OPEN, ConversationStatus.ACTIVE)


@dataclass(frozen=True, slots=True)
class MessagePageDTO:
    after_id: int | None = None
    limit: int = 50


@dataclass(frozen=True, slots=True)
class ConversationFilterDTO:
    """Admin inbox filter. ``participant_admin_id`` narrows to one admin's conversations."""

    statuses: tuple[ConversationStatus, ...] = UNRESOLVED_STATUSES
    participant_admin_id: int | None = None
    limit: int = 50
