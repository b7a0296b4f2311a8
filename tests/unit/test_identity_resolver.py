from __future__ import annotations

from datetime import timedelta

import pytest

from support_chat.application.exceptions import PersistenceError, UnauthenticatedError
from support_chat.config import settings
from support_chat.infrastructure.auth.session_decoder import HS256SessionDecoder
from support_chat.services.identity_resolver import IdentityResolver
from tests.conftest import ADMIN, OWNER, make_token


@pytest.fixture
def resolver(uow) -> IdentityResolver:
    return IdentityResolver(HS256SessionDecoder(settings.SESSION_SECRET), uow)


@pytest.mark.asyncio
async def test_resolves_customer(resolver):
    identity = await resolver.resolve(make_token(customer_id=OWNER.id))

    assert identity.customer == OWNER
    assert identity.admin is None


@pytest.mark.asyncio
async def test_resolves_admin_from_string_claim(resolver):
    identity = await resolver.resolve(make_token(admin_id=str(ADMIN.id)))

    assert identity.admin == ADMIN
    assert identity.customer is None


@pytest.mark.asyncio
async def test_resolves_both_namespaces(resolver):
    identity = await resolver.resolve(make_token(customer_id=OWNER.id, admin_id=ADMIN.id))

    assert identity.customer == OWNER
    assert identity.admin == ADMIN


@pytest.mark.asyncio
async def test_unknown_ids_are_anonymous(resolver):
    identity = await resolver.resolve(make_token(customer_id=9999, admin_id=9999))

    assert identity.is_anonymous


@pytest.mark.asyncio
async def test_one_unknown_id_keeps_the_other(resolver):
    identity = await resolver.resolve(make_token(customer_id=9999, admin_id=ADMIN.id))

    assert identity.customer is None
    assert identity.admin == ADMIN


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token",
    [
        None,
        "",
        "not-a-jwt",
        make_token(customer_id=42, secret="some-other-secret-of-sufficient-length"),
        make_token(customer_id=42, expires_in=timedelta(seconds=-30)),
        make_token(customer_id=True),
        make_token(customer_id="forty-two"),
    ],
)
async def test_bad_credentials_are_anonymous(resolver, token):
    identity = await resolver.resolve(token)

    assert identity.is_anonymous


@pytest.mark.asyncio
async def test_lookup_failure_is_anonymous():
    class FailingUoW:
        async def __aenter__(self):
            raise PersistenceError("database unavailable")

        async def __aexit__(self, *exc):
            return None

    resolver = IdentityResolver(HS256SessionDecoder(settings.SESSION_SECRET), FailingUoW)

    identity = await resolver.resolve(make_token(customer_id=OWNER.id))

    assert identity.is_anonymous


@pytest.mark.asyncio
async def test_authenticate_raises_for_anonymous(resolver):
    with pytest.raises(UnauthenticatedError):
        await resolver.authenticate(None)

    identity = await resolver.authenticate(make_token(customer_id=OWNER.id))
    assert identity.customer == OWNER
