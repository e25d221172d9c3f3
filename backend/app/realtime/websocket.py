import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.realtime import events
from app.realtime.registry import Connection

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def realtime_updates(websocket: WebSocket) -> None:
    registry = websocket.app.state.connection_registry
    await websocket.accept()

    connection = Connection(websocket)
    connection.push(json.dumps(events.connected(), ensure_ascii=False))
    registry.add(connection)
    writer = asyncio.create_task(connection.pump())
    try:
        while True:
            # o cliente só escuta; mensagens recebidas são ignoradas
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("realtime_disconnected")
    finally:
        connection.close()
        registry.remove(connection)
        writer.cancel()
