import asyncio
import json

from app.realtime import events
from app.realtime.registry import Connection, ConnectionRegistry
from main import app


class RecordingWebSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_text(self, message):
        if self.fail:
            raise RuntimeError("socket gone")
        self.sent.append(json.loads(message))


async def _drain(connection, rounds=10):
    task = asyncio.create_task(connection.pump())
    for _ in range(rounds):
        await asyncio.sleep(0)
    task.cancel()


def test_events_arrive_in_publish_order():
    registry = ConnectionRegistry()

    async def scenario():
        websocket = RecordingWebSocket()
        connection = Connection(websocket)
        registry.add(connection)
        for index in range(3):
            assert registry.broadcast({"type": events.DASHBOARD_UPDATE, "data": {"seq": index}}) == 1
        await _drain(connection)
        return websocket.sent

    sent = asyncio.run(scenario())

    assert [event["data"]["seq"] for event in sent] == [0, 1, 2]


def test_dead_connections_are_dropped_without_affecting_others():
    registry = ConnectionRegistry()
    stale_loop = asyncio.new_event_loop()
    stale_loop.close()

    async def scenario():
        healthy = RecordingWebSocket()
        healthy_connection = Connection(healthy)
        closed_connection = Connection(RecordingWebSocket())
        closed_connection.close()
        orphan_connection = Connection(RecordingWebSocket(), loop=stale_loop)
        for connection in (healthy_connection, closed_connection, orphan_connection):
            registry.add(connection)

        delivered = registry.broadcast({"type": events.DASHBOARD_UPDATE, "data": {}})
        await _drain(healthy_connection)
        return delivered, healthy.sent

    delivered, sent = asyncio.run(scenario())

    assert delivered == 1
    assert len(sent) == 1
    assert len(registry) == 1


def test_send_failure_closes_connection():
    registry = ConnectionRegistry()

    async def scenario():
        connection = Connection(RecordingWebSocket(fail=True))
        registry.add(connection)
        registry.broadcast({"type": events.DASHBOARD_UPDATE, "data": {}})
        await _drain(connection)
        return connection

    connection = asyncio.run(scenario())

    assert connection.closed is True
    assert registry.broadcast({"type": events.DASHBOARD_UPDATE, "data": {}}) == 0
    assert len(registry) == 0


def test_websocket_receives_connected_and_broadcasts(client):
    with client.websocket_connect("/ws") as websocket:
        greeting = websocket.receive_json()
        assert greeting["type"] == events.CONNECTED

        assert client.get("/healthz").json()["connections"] == 1
        app.state.connection_registry.broadcast(events.dashboard_update("status_update"))

        update = websocket.receive_json()
        assert update["type"] == events.DASHBOARD_UPDATE
        assert update["data"]["reason"] == "status_update"
