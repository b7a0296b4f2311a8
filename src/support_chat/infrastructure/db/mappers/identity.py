from __future__ import annotations

from support_chat.domain.entities.identity import AdminUser, Customer
from support_chat.infrastructure.db.models.identity import AdminUserModel, UserModel


def user_to_customer(model: UserModel) -> Customer:
    return Customer(
        id=model.id,
        email=model.email,
        first_name=model.first_name,
        last_name=model.last_name,
    )


def admin_to_entity(model: AdminUserModel) -> AdminUser:
    return AdminUser(id=model.id, email=model.email)
