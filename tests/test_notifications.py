from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List

import pytest
from socketio.exceptions import ConnectionError as SocketConnectionError

from fastbite.admin.notifications import NAMESPACE, AdminNotificationService, MissingTokenError, SocketEvents, order_link

pytestmark = pytest.mark.anyio


class FakeSocket:
    """Stands in for ``socketio.AsyncClient``; ``fail`` makes ``connect`` raise."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.connected = False
        self.handlers: Dict[str, Callable[..., Any]] = {}
        self.connect_calls: List[Dict[str, Any]] = []
        self.disconnected = False

    def on(self, event: str, handler: Callable[..., Any], namespace: str | None = None) -> None:
        assert namespace == NAMESPACE
        self.handlers[event] = handler

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.connect_calls.append({"url": url, **kwargs})
        if self.fail:
            raise SocketConnectionError("refused")
        self.connected = True
        self.handlers["connect"]()

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnected = True


class SocketFactory:
    def __init__(self, outcomes: List[bool]):
        # True = connect succeeds; the last outcome repeats
        self.outcomes = outcomes
        self.sockets: List[FakeSocket] = []

    def __call__(self) -> FakeSocket:
        ok = self.outcomes[min(len(self.sockets), len(self.outcomes) - 1)]
        sock = FakeSocket(fail=not ok)
        self.sockets.append(sock)
        return sock


async def instant(_: float) -> None:
    return None


async def drain(rounds: int = 50) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_service(factory: SocketFactory, token: str | None = "admin-token", notify=None) -> AdminNotificationService:
    return AdminNotificationService(
        lambda: token,
        server_url="http://socket.test/",
        notify=notify,
        client_factory=factory,
        sleep=instant,
    )


# -------------------
# Connecting
# -------------------
async def test_connect_sends_token_to_admin_namespace():
    factory = SocketFactory([True])
    service = make_service(factory)

    assert await service.connect()

    call = factory.sockets[0].connect_calls[0]
    assert call["url"] == "http://socket.test"
    assert call["namespaces"] == [NAMESPACE]
    assert call["auth"] == {"token": "admin-token"}
    assert service.connected
    assert await service.connect()
    assert len(factory.sockets) == 1


async def test_missing_token():
    service = make_service(SocketFactory([True]), token=None)
    with pytest.raises(MissingTokenError):
        await service.connect()


async def test_reconnect_gives_up_after_max_attempts():
    factory = SocketFactory([False])
    service = make_service(factory)

    with pytest.raises(SocketConnectionError):
        await service.connect()
    await drain()

    assert len(factory.sockets) == 1 + service.max_reconnect_attempts
    assert service.reconnect_attempts == service.max_reconnect_attempts
    assert not service.connected


async def test_reconnect_succeeds_and_resets_counter():
    factory = SocketFactory([False, False, True])
    service = make_service(factory)

    with pytest.raises(SocketConnectionError):
        await service.connect()
    await drain()

    assert service.connected
    assert len(factory.sockets) == 3
    assert service.reconnect_attempts == 0


async def test_unexpected_drop_reconnects():
    factory = SocketFactory([True])
    service = make_service(factory)
    await service.connect()

    sock = factory.sockets[0]
    sock.connected = False
    sock.handlers["disconnect"]("transport close")
    await drain()

    assert len(factory.sockets) == 2
    assert service.connected


async def test_disconnect_stops_reconnecting():
    factory = SocketFactory([False])
    service = make_service(factory)

    with pytest.raises(SocketConnectionError):
        await service.connect()
    await service.disconnect()
    await drain()

    assert len(factory.sockets) == 1
    assert factory.sockets[0].disconnected
    assert not service.auto_reconnect


# -------------------
# Events
# -------------------
async def test_notification_becomes_notice_with_order_link():
    seen = []
    received = []
    factory = SocketFactory([True])
    service = make_service(factory, notify=seen.append)
    service.on(SocketEvents.NOTIFICATION, received.append)
    await service.connect()

    payload = {"message": "New order #5", "type": "order", "data": {"order": {"id": 5}}}
    factory.sockets[0].handlers["notification"](payload)

    assert seen[-1].title == "New order #5"
    assert seen[-1].description == "Type: order"
    assert seen[-1].link == "/dashboard/orders/5"
    assert received == [payload]


async def test_listeners_are_isolated_and_removable():
    factory = SocketFactory([True])
    service = make_service(factory)
    got = []

    def broken(data):
        raise RuntimeError("listener bug")

    service.on(SocketEvents.ORDER_CREATED, broken)
    service.on("order:created", got.append)
    await service.connect()

    relay = factory.sockets[0].handlers["order:created"]
    relay({"id": 1})
    service.off(SocketEvents.ORDER_CREATED, got.append)
    relay({"id": 2})

    assert got == [{"id": 1}]


def test_order_link():
    assert order_link({"data": {"order": {"id": "abc"}}}) == "/dashboard/orders/abc"
    assert order_link({"message": "hi"}) is None


def test_default_client_uses_aiohttp_transport():
    import aiohttp
    import socketio

    from fastbite.admin.notifications import _default_client

    sio = _default_client()
    assert isinstance(sio, socketio.AsyncClient)
    assert sio.reconnection is False
    assert aiohttp.ClientSession
