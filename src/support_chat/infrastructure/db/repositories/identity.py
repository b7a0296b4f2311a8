from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from support_chat.domain.entities.identity import AdminUser, Customer
from support_chat.infrastructure.db.mappers import identity as mapper
from support_chat.infrastructure.db.models.identity import AdminUserModel, UserModel


class CustomerReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, customer_id: int) -> Customer | None:
        model = await self._session.get(UserModel, customer_id)
        return mapper.user_to_customer(model) if model else None


class AdminReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, admin_id: int) -> AdminUser | None:
        model = await self._session.get(AdminUserModel, admin_id)
        return mapper.admin_to_entity(model) if model else None
