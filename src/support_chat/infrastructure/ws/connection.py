"""A single WebSocket connection with its own outbound queue."""
from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import WebSocket

from support_chat.application.dto.identity import ConnectionIdentity

logger = logging.getLogger(__name__)

SLOW_CONSUMER_CLOSE_CODE = 1013


class WsConnection:
    """Decouples broadcast fan-out from socket writes.

    ``deliver`` only enqueues; a dedicated writer task drains the queue in
    order. A connection whose queue overflows is dropped instead of making
    publishers wait.
    """

    def __init__(
        self,
        websocket: WebSocket,
        identity: ConnectionIdentity,
        *,
        queue_size: int = 256,
    ) -> None:
        self.key = uuid.uuid4().hex
        self.identity = identity
        self._ws = websocket
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._closer: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        self._writer = asyncio.create_task(self._drain(), name=f"ws-writer-{self.key}")

    def deliver(self, raw: str) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(raw)
        except asyncio.QueueFull:
            logger.warning("WS %s send queue full, dropping slow consumer", self.key)
            self._closed = True
            self._closer = asyncio.create_task(
                self._close_socket(SLOW_CONSUMER_CLOSE_CODE, "Slow consumer"),
                name=f"ws-close-{self.key}",
            )

    async def close(self) -> None:
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
        if self._closer is not None:
            await self._closer

    async def _drain(self) -> None:
        while True:
            raw = await self._queue.get()
            try:
                await self._ws.send_text(raw)
            except Exception:
                logger.debug("WS %s send failed, stopping writer", self.key, exc_info=True)
                self._closed = True
                return

    async def _close_socket(self, code: int, reason: str) -> None:
        try:
            await self._ws.close(code=code, reason=reason)
        except Exception:
            logger.debug("WS %s already closed", self.key, exc_info=True)

    def __repr__(self) -> str:
        return f"WsConnection(key={self.key!r})"
