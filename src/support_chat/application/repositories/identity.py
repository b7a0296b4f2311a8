from __future__ import annotations

from typing import Protocol

from support_chat.domain.entities.identity import AdminUser, Customer


class CustomerReader(Protocol):
    async def get_by_id(self, customer_id: int) -> Customer | None: ...


class AdminReader(Protocol):
    async def get_by_id(self, admin_id: int) -> AdminUser | None: ...
