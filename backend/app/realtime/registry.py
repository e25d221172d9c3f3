"""
Registro das conexões WebSocket abertas e envio de eventos.

``broadcast`` é síncrono e pode ser chamado de qualquer thread (os endpoints
rodam no threadpool). Cada conexão tem uma fila própria esvaziada por uma task
no loop do servidor, o que mantém a ordem dos eventos por conexão sem segurar
quem publica.
"""
from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Any

from fastapi import Request, WebSocket

from app.core.errors import BroadcastFailure

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.websocket = websocket
        self.loop = loop or asyncio.get_running_loop()
        self.queue: asyncio.Queue[str] = asyncio.Queue()
        self.closed = False

    def push(self, message: str) -> None:
        if self.closed:
            raise BroadcastFailure("connection closed")
        try:
            self.loop.call_soon_threadsafe(self.queue.put_nowait, message)
        except RuntimeError as exc:
            self.closed = True
            raise BroadcastFailure("event loop closed") from exc

    async def pump(self) -> None:
        while not self.closed:
            message = await self.queue.get()
            try:
                await self.websocket.send_text(message)
            except Exception as exc:
                self.closed = True
                logger.debug("realtime_send_failed error=%s", exc)

    def close(self) -> None:
        self.closed = True


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: set[Connection] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def add(self, connection: Connection) -> None:
        with self._lock:
            self._connections.add(connection)
        logger.info("realtime_connected total=%s", len(self))

    def remove(self, connection: Connection) -> None:
        with self._lock:
            self._connections.discard(connection)

    def broadcast(self, event: dict[str, Any]) -> int:
        """Envia o evento a todas as conexões abertas; devolve quantas receberam."""
        message = json.dumps(event, default=str, ensure_ascii=False)
        with self._lock:
            connections = list(self._connections)

        delivered = 0
        for connection in connections:
            if connection.closed:
                self.remove(connection)
                continue
            try:
                connection.push(message)
            except BroadcastFailure as exc:
                self.remove(connection)
                logger.debug("realtime_push_failed type=%s error=%s", event.get("type"), exc)
                continue
            delivered += 1
        return delivered


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connection_registry
