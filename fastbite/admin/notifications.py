# fastbite/admin/notifications.py
"""
Live order/payment events for the admin dashboard over socket.io.

One client connects to the ``/admin`` namespace with the admin token in the
handshake ``auth``. The library's own reconnection is off; after a failed
connect or an unexpected drop the service retries on a fixed interval, up to
``max_reconnect_attempts`` times. ``disconnect()`` stops that for good until
the next explicit ``connect()``.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import socketio
from socketio import exceptions as socketio_exceptions

from ..notices import Notifier, NotifyFn
from ..settings import settings

logger = logging.getLogger(__name__)

NAMESPACE = "/admin"
RECONNECT_INTERVAL = 3.0
MAX_RECONNECT_ATTEMPTS = 5


class SocketEvents(str, Enum):
    ORDER_CREATED = "order:created"
    ORDER_APPROVED = "order:approved"
    ORDER_REJECTED = "order:rejected"
    ORDER_SHIPPED = "order:shipped"
    ORDER_DELIVERED = "order:delivered"
    ORDER_COMPLETED = "order:completed"
    ORDER_CANCELLED = "order:cancelled"

    PAYMENT_COMPLETED = "payment:completed"
    PAYMENT_FAILED = "payment:failed"
    PAYMENT_REFUNDED = "payment:refunded"

    NOTIFICATION = "notification"


EventCallback = Callable[[Any], None]
ClientFactory = Callable[[], Any]
Sleep = Callable[[float], Awaitable[Any]]


class MissingTokenError(RuntimeError):
    pass


def _default_client() -> socketio.AsyncClient:
    return socketio.AsyncClient(reconnection=False)


def order_link(notification: Dict[str, Any]) -> Optional[str]:
    order = (notification.get("data") or {}).get("order") or {}
    order_id = order.get("id") if isinstance(order, dict) else None
    return f"/dashboard/orders/{order_id}" if order_id else None


class AdminNotificationService:
    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        server_url: str | None = None,
        notify: Optional[NotifyFn] = None,
        client_factory: ClientFactory = _default_client,
        sleep: Sleep = asyncio.sleep,
        reconnect_interval: float = RECONNECT_INTERVAL,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
    ):
        self.server_url = (server_url or settings.socket_url).rstrip("/")
        self.token_provider = token_provider
        self.notice = Notifier(notify)
        self._client_factory = client_factory
        self._sleep = sleep
        self.reconnect_interval = reconnect_interval
        self.max_reconnect_attempts = max_reconnect_attempts

        self.sio: Any = None
        self.reconnect_attempts = 0
        self.auto_reconnect = True
        self._listeners: Dict[str, List[EventCallback]] = {}
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return bool(self.sio is not None and self.sio.connected)

    # -------------------
    # Connection
    # -------------------
    async def connect(self) -> bool:
        self.auto_reconnect = True
        return await self._open()

    async def _open(self) -> bool:
        if self.connected:
            logger.info("Admin socket already connected")
            return True

        token = self.token_provider()
        if not token:
            logger.error("Admin token not found, cannot open the notification socket")
            raise MissingTokenError("Auth token not found")

        sio = self._client_factory()
        self._register(sio)
        self.sio = sio
        try:
            await sio.connect(
                self.server_url,
                namespaces=[NAMESPACE],
                auth={"token": token},
                transports=["websocket"],
            )
        except socketio_exceptions.ConnectionError as e:
            logger.error("Admin socket connection failed: %s", e)
            self._schedule_reconnect()
            raise
        return True

    async def disconnect(self) -> None:
        self.auto_reconnect = False
        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None
        if self.sio is not None:
            sio, self.sio = self.sio, None
            await sio.disconnect()
            logger.info("Admin socket disconnected")

    def _schedule_reconnect(self) -> None:
        if not self.auto_reconnect or self.reconnect_attempts >= self.max_reconnect_attempts:
            logger.info("Stopped reconnecting after %s attempts", self.reconnect_attempts)
            return
        self.reconnect_attempts += 1
        logger.info("Reconnecting... attempt %s of %s", self.reconnect_attempts, self.max_reconnect_attempts)
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect_later())

    async def _reconnect_later(self) -> None:
        await self._sleep(self.reconnect_interval)
        if not self.auto_reconnect:
            return
        try:
            await self._open()
        except (socketio_exceptions.ConnectionError, MissingTokenError):
            # _open already scheduled the next attempt, if any remain
            pass

    # -------------------
    # Socket handlers
    # -------------------
    def _register(self, sio: Any) -> None:
        sio.on("connect", self._on_connect, namespace=NAMESPACE)
        sio.on("connect_error", self._on_connect_error, namespace=NAMESPACE)
        sio.on("disconnect", self._on_disconnect, namespace=NAMESPACE)
        sio.on(SocketEvents.NOTIFICATION.value, self._on_notification, namespace=NAMESPACE)
        for event in SocketEvents:
            if event is not SocketEvents.NOTIFICATION:
                sio.on(event.value, self._relay(event.value), namespace=NAMESPACE)

    def _on_connect(self) -> None:
        logger.info("Admin socket connected")
        self.reconnect_attempts = 0

    def _on_connect_error(self, data: Any = None) -> None:
        logger.warning("Admin socket connect error: %s", data)

    def _on_disconnect(self, *args: Any) -> None:
        logger.info("Admin socket dropped: %s", args[0] if args else "unknown reason")
        if self.auto_reconnect:
            self._schedule_reconnect()

    def _on_notification(self, payload: Any) -> None:
        notification = payload if isinstance(payload, dict) else {"message": str(payload)}
        self.notice(
            "info",
            str(notification.get("message") or "New notification"),
            f"Type: {notification.get('type') or 'general'}",
            link=order_link(notification),
        )
        self._trigger(SocketEvents.NOTIFICATION.value, notification)

    def _relay(self, event: str) -> Callable[[Any], None]:
        def handler(data: Any = None) -> None:
            logger.debug("Received %s: %s", event, data)
            self._trigger(event, data)

        return handler

    # -------------------
    # Listeners
    # -------------------
    def on(self, event: SocketEvents | str, callback: EventCallback) -> None:
        self._listeners.setdefault(getattr(event, "value", event), []).append(callback)

    def off(self, event: SocketEvents | str, callback: EventCallback) -> None:
        callbacks = self._listeners.get(getattr(event, "value", event))
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def _trigger(self, event: str, data: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(data)
            except Exception:
                logger.exception("Error in %s event callback", event)
