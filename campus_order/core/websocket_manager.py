"""
WebSocket connection manager for real-time updates

Connections join named channels: `admin-orders` for the back office and
`order-{displayId}` for a customer following one order.
"""

from typing import Dict, Set
from fastapi import WebSocket
from json import dumps
import structlog

from campus_order.core.events import (
    EventBus, OrderClosed, OrderEventBase, OrderStatusChanged, OrderSubmitted, ShopStatusChanged,
)

logger = structlog.get_logger(__name__)

ADMIN_ORDERS_CHANNEL = "admin-orders"
SHOP_CHANNEL = "shop"


def order_channel(display_id: str) -> str:
    return f"order-{display_id}"


class ConnectionManager:
    """Manages WebSocket connections grouped by channel"""

    def __init__(self):
        self.channels: Dict[str, Set[WebSocket]] = {}
        self.connection_to_channel: Dict[WebSocket, str] = {}

    async def connect(self, websocket: WebSocket, channel: str):
        """Accept a WebSocket and add it to a channel"""
        await websocket.accept()
        self.channels.setdefault(channel, set()).add(websocket)
        self.connection_to_channel[websocket] = channel
        logger.info(f"Connected WebSocket to channel {channel}")

    def disconnect(self, websocket: WebSocket):
        """Disconnect a WebSocket connection"""
        channel = self.connection_to_channel.pop(websocket, None)
        if channel is None:
            logger.warning("Attempted to disconnect unknown WebSocket")
            return
        connections = self.channels.get(channel)
        if connections is not None:
            connections.discard(websocket)
            if not connections:
                del self.channels[channel]
        logger.info(f"Disconnected WebSocket from channel {channel}")

    def connection_count(self, channel: str) -> int:
        return len(self.channels.get(channel, ()))

    async def broadcast(self, channel: str, message: dict):
        """Broadcast message to all connections in a channel"""
        connections = list(self.channels.get(channel, ()))
        if not connections:
            logger.debug(f"No connections for channel {channel}")
            return

        message_json = dumps(message)
        disconnected = []
        for connection in connections:
            try:
                await connection.send_text(message_json)
            except Exception as e:
                logger.error(f"Error sending to connection: {e}")
                disconnected.append(connection)

        # Clean up dead connections
        for connection in disconnected:
            self.disconnect(connection)

        logger.debug(f"Broadcasted to {len(connections)} connections for channel {channel}")

    async def on_order_submitted(self, event: OrderSubmitted):
        await self.broadcast(ADMIN_ORDERS_CHANNEL, event.to_dict())

    async def on_order_event(self, event: OrderEventBase):
        payload = event.to_dict()
        await self.broadcast(ADMIN_ORDERS_CHANNEL, payload)
        await self.broadcast(order_channel(event.display_id), payload)

    async def on_shop_status_changed(self, event: ShopStatusChanged):
        await self.broadcast(SHOP_CHANNEL, event.to_dict())

    def register(self, event_bus: EventBus):
        """Subscribe broadcast handlers to the event bus"""
        event_bus.subscribe(OrderSubmitted, self.on_order_submitted)
        event_bus.subscribe(OrderStatusChanged, self.on_order_event)
        event_bus.subscribe(OrderClosed, self.on_order_event)
        event_bus.subscribe(ShopStatusChanged, self.on_shop_status_changed)
