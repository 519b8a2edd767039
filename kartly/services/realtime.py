# kartly/services/realtime.py
"""
Realtime order updates over WebSocket.

Connections join named channels: ``vendor_<vendorId>`` for dashboards and
``order_<orderId>`` for customer receipt trackers. Services publish through
the ``Notifier`` protocol and never touch sockets directly.
"""
import asyncio
import json
from dataclasses import dataclass, asdict, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Protocol, Set

from fastapi import WebSocket

from kartly.core.constants import order_channel, vendor_channel
from kartly.core.logging import logger
from kartly.db.models.order import Order
from kartly.schemas.order import OrderRead


class EventType(str, Enum):
    """WebSocket event types"""
    # Connection events
    CONNECTED = "connected"
    JOINED = "joined"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"

    # Client requests
    JOIN_ROOM = "join_room"
    JOIN_ORDER_ROOM = "join_order_room"

    # Order events
    NEW_ORDER = "new_order"
    ORDER_STATUS_UPDATE = "order_status_update"
    VENDOR_ORDERS_REFRESH = "vendor_orders_refresh"


@dataclass
class RealtimeMessage:
    """Standard WebSocket message format"""
    event: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = None

    def __post_init__(self):
        if isinstance(self.event, EventType):
            self.event = self.event.value
        if not self.timestamp:
            self.timestamp = datetime.utcnow().isoformat()

    def to_json(self) -> str:
        return json.dumps(asdict(self))


class ConnectionManager:
    """
    Manages WebSocket connections and channel membership.
    One instance per process, created at application startup.
    """

    def __init__(self):
        self.channels: Dict[str, Set[WebSocket]] = {}
        self.connection_channels: Dict[WebSocket, Set[str]] = {}
        self._lock = asyncio.Lock()
        self.stats = {
            "total_connections": 0,
            "messages_sent": 0,
            "messages_broadcast": 0,
        }

    async def connect(self, websocket: WebSocket):
        """Accept a new WebSocket connection"""
        await websocket.accept()
        async with self._lock:
            self.connection_channels[websocket] = set()
        self.stats["total_connections"] += 1
        await self.send_personal(websocket, RealtimeMessage(
            event=EventType.CONNECTED,
            data={"message": "Connected to real-time updates"},
        ))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            for channel in self.connection_channels.pop(websocket, set()):
                members = self.channels.get(channel)
                if members is not None:
                    members.discard(websocket)
                    if not members:
                        del self.channels[channel]

    async def join(self, websocket: WebSocket, channel: str):
        async with self._lock:
            self.channels.setdefault(channel, set()).add(websocket)
            self.connection_channels.setdefault(websocket, set()).add(channel)
        logger.info(f"Socket joined channel {channel}")

    def subscriber_count(self, channel: str) -> int:
        return len(self.channels.get(channel, ()))

    async def send_personal(self, websocket: WebSocket, message: RealtimeMessage):
        await websocket.send_text(message.to_json())
        self.stats["messages_sent"] += 1

    async def broadcast(self, channel: str, message: RealtimeMessage) -> int:
        """Send to every member of a channel; dead sockets are dropped. Returns deliveries."""
        async with self._lock:
            members: List[WebSocket] = list(self.channels.get(channel, ()))

        payload = message.to_json()
        delivered = 0
        dead: List[WebSocket] = []
        for websocket in members:
            try:
                await websocket.send_text(payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping unreachable socket on {channel}: {e}")
                dead.append(websocket)

        for websocket in dead:
            await self.disconnect(websocket)

        self.stats["messages_broadcast"] += 1
        self.stats["messages_sent"] += delivered
        return delivered


class Notifier(Protocol):
    """Capability the order and payment services publish through"""

    async def publish_new_order(self, vendor_id: str, order: Order) -> None:
        ...

    async def publish_order_status_changed(self, order_id: str, vendor_id: str, new_status: str) -> None:
        ...


class RealtimeNotifier:
    """Notifier backed by the in-process ConnectionManager"""

    def __init__(self, manager: ConnectionManager):
        self.manager = manager

    async def publish_new_order(self, vendor_id: str, order: Order) -> None:
        payload = OrderRead.model_validate(order).model_dump(mode="json", by_alias=True)
        await self.manager.broadcast(
            vendor_channel(vendor_id),
            RealtimeMessage(event=EventType.NEW_ORDER, data=payload),
        )

    async def publish_order_status_changed(self, order_id: str, vendor_id: str, new_status: str) -> None:
        await self.manager.broadcast(
            order_channel(order_id),
            RealtimeMessage(
                event=EventType.ORDER_STATUS_UPDATE,
                data={"orderId": order_id, "orderStatus": new_status},
            ),
        )
        # Other dashboard sessions of the same vendor only need a nudge to refetch
        await self.manager.broadcast(
            vendor_channel(vendor_id),
            RealtimeMessage(event=EventType.VENDOR_ORDERS_REFRESH),
        )
