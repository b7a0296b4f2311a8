"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from support_chat.application.dto.identity import ConnectionIdentity
from support_chat.application.uow import UnitOfWork
from support_chat.config import settings
from support_chat.runtime import ChatRuntime

_bearer_scheme = HTTPBearer(auto_error=False)


def get_runtime(request: Request) -> ChatRuntime:
    return request.app.state.runtime


RuntimeDep = Annotated[ChatRuntime, Depends(get_runtime)]


async def get_uow(runtime: RuntimeDep) -> AsyncIterator[UnitOfWork]:
    async with runtime.uow_factory() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


async def get_current_identity(
    request: Request,
    runtime: RuntimeDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> ConnectionIdentity:
    # Bearer token for API clients, session cookie for the storefront pages.
    token = credentials.credentials if credentials else request.cookies.get(settings.SESSION_COOKIE_NAME)
    # UnauthenticatedError is turned into a 401 by the app exception handler.
    return await runtime.resolver.authenticate(token)


CurrentIdentity = Annotated[ConnectionIdentity, Depends(get_current_identity)]


async def get_current_admin(identity: CurrentIdentity) -> ConnectionIdentity:
    if identity.admin is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return identity


CurrentAdmin = Annotated[ConnectionIdentity, Depends(get_current_admin)]
