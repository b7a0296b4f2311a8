"""Connection handshake: session token -> verified customer/admin identities."""
from __future__ import annotations

import logging
from typing import Any

from support_chat.application.dto.identity import ANONYMOUS, ConnectionIdentity
from support_chat.application.exceptions import PersistenceError, UnauthenticatedError
from support_chat.application.ports.auth import SessionDecoder
from support_chat.application.uow import UoWFactory

logger = logging.getLogger(__name__)

CUSTOMER_CLAIM = "customer_id"
ADMIN_CLAIM = "admin_id"


class IdentityResolver:
    def __init__(self, decoder: SessionDecoder, uow_factory: UoWFactory) -> None:
        self._decoder = decoder
        self._uow_factory = uow_factory

    async def resolve(self, credentials: str | None) -> ConnectionIdentity:
        """Look up both identity namespaces; never raises.

        Missing, malformed or unverifiable credentials resolve to the
        anonymous identity, exactly like ids that match no record.
        """
        claims = self._claims(credentials)
        customer_id = _claim_id(claims, CUSTOMER_CLAIM)
        admin_id = _claim_id(claims, ADMIN_CLAIM)
        if customer_id is None and admin_id is None:
            return ANONYMOUS

        try:
            async with self._uow_factory() as uow:
                customer = await uow.customers.get_by_id(customer_id) if customer_id is not None else None
                admin = await uow.admins.get_by_id(admin_id) if admin_id is not None else None
        except PersistenceError:
            logger.warning("Identity lookup failed", exc_info=True)
            return ANONYMOUS
        return ConnectionIdentity(customer=customer, admin=admin)

    async def authenticate(self, credentials: str | None) -> ConnectionIdentity:
        identity = await self.resolve(credentials)
        if identity.is_anonymous:
            raise UnauthenticatedError("Authentication failed")
        return identity

    def _claims(self, credentials: str | None) -> dict[str, Any]:
        if not credentials:
            return {}
        try:
            claims = self._decoder.decode(credentials)
        except Exception:
            logger.debug("Session token rejected", exc_info=True)
            return {}
        return claims if isinstance(claims, dict) else {}


def _claim_id(claims: dict[str, Any], name: str) -> int | None:
    raw = claims.get(name)
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw)
    return None
