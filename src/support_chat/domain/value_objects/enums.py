from __future__ import annotations

from enum import StrEnum


class ConversationStatus(StrEnum):
    OPEN = "open"
    ACTIVE = "active"
    RESOLVED = "resolved"
    CLOSED = "closed"


class SenderKind(StrEnum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class PresenceStatus(StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"


class SubscriptionState(StrEnum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBED = "subscribed"
    TERMINATED = "terminated"
