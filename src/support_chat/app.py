from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from support_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from support_chat.api.middleware.metrics import RequestTimingMiddleware
from support_chat.api.v1.routers import (
    admin_conversations,
    conversations,
    health,
    messages,
    presence,
    ws,
)
from support_chat.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    UnauthenticatedError,
    ValidationError,
)
from support_chat.application.uow import UoWFactory
from support_chat.config import settings
from support_chat.runtime import ChatRuntime, build_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    logger.info("Support chat started (heartbeat=%ds)", settings.WS_HEARTBEAT_SECONDS)

    yield

    from support_chat.infrastructure.db.session import engine

    await engine.dispose()
    logger.info("Database engine disposed")


def create_app(
    uow_factory: UoWFactory | None = None,
    runtime: ChatRuntime | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Storefront Support Chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    if runtime is None:
        if uow_factory is None:
            from support_chat.infrastructure.db.uow import sqlalchemy_uow

            uow_factory = sqlalchemy_uow
        runtime = build_runtime(settings, uow_factory)
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(admin_conversations.router)
    app.include_router(presence.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UnauthenticatedError)
    async def _unauthenticated(_req: Request, exc: UnauthenticatedError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(PersistenceError)
    async def _persistence(_req: Request, exc: PersistenceError) -> JSONResponse:
        logger.warning("Store failure: %s", exc.detail)
        return JSONResponse(status_code=503, content={"detail": "Service unavailable"})
