from __future__ import annotations

from dataclasses import dataclass

from support_chat.domain.entities.identity import AdminUser, Customer
from support_chat.domain.value_objects.enums import SenderKind


@dataclass(frozen=True, slots=True)
class ConnectionIdentity:
    """Verified identities attached to a connection.

    Both namespaces are resolved independently, so a connection may carry a
    customer, an admin, or both. Which one acts inside a given conversation is
    decided per conversation, see ``acting_identity``.
    """

    customer: Customer | None = None
    admin: AdminUser | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.customer is None and self.admin is None

    @property
    def sender_kind(self) -> SenderKind:
        if self.customer is not None:
            return SenderKind.CUSTOMER
        if self.admin is not None:
            return SenderKind.ADMIN
        raise ValueError("anonymous identity has no sender kind")

    @property
    def sender_id(self) -> int:
        if self.customer is not None:
            return self.customer.id
        if self.admin is not None:
            return self.admin.id
        raise ValueError("anonymous identity has no sender id")

    @property
    def sender_name(self) -> str:
        if self.customer is not None:
            return self.customer.display_name
        if self.admin is not None:
            return self.admin.display_name
        return "Unknown"


ANONYMOUS = ConnectionIdentity()
