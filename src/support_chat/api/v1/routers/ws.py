from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PayloadError

from support_chat.application.exceptions import UnauthenticatedError
from support_chat.config import settings
from support_chat.infrastructure.ws.connection import WsConnection
from support_chat.infrastructure.ws.protocol import encode, parse_inbound
from support_chat.runtime import ChatRuntime
from support_chat.services.conversation_router import ChatSession, ConversationRouter

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

UNAUTHENTICATED_CLOSE_CODE = 4001


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
) -> None:
    runtime: ChatRuntime = websocket.app.state.runtime
    credentials = token or websocket.cookies.get(settings.SESSION_COOKIE_NAME)
    try:
        identity = await runtime.resolver.authenticate(credentials)
    except UnauthenticatedError as exc:
        await websocket.close(code=UNAUTHENTICATED_CLOSE_CODE, reason=exc.detail)
        return

    await websocket.accept()
    connection = WsConnection(websocket, identity, queue_size=settings.WS_SEND_QUEUE_SIZE)
    connection.start()
    session = runtime.router.open_session(connection, identity)
    logger.debug("WS connected: %s (%s)", connection.key, identity.sender_kind)

    heartbeat_task = asyncio.create_task(
        _heartbeat(connection), name=f"ws-heartbeat-{connection.key}",
    )
    try:
        await _read_loop(websocket, runtime.router, session)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", connection.key)
    finally:
        heartbeat_task.cancel()
        await runtime.router.close_session(session)
        await connection.close()
        logger.debug("WS disconnected: %s", connection.key)


async def _heartbeat(connection: WsConnection) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while not connection.closed:
            await asyncio.sleep(interval)
            connection.deliver(encode("pong", {}))
    except asyncio.CancelledError:
        pass


async def _read_loop(ws: WebSocket, router: ConversationRouter, session: ChatSession) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            action = parse_inbound(raw)
        except PayloadError:
            session.connection.deliver(encode("error", {"code": "invalid_payload"}))
            continue
        await router.dispatch(session, action)
