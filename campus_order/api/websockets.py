"""
WebSocket endpoints for real-time updates

Access checks run in the threadpool on a short-lived session that is closed
before the socket is accepted; an open socket holds no database connection.
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from sqlmodel import select
from datetime import datetime
from typing import Callable, Optional
import structlog

from campus_order.core.auth import SessionIdentity
from campus_order.core.database import get_session_factory
from campus_order.core.dependencies import load_active_admin
from campus_order.core.websocket_manager import ADMIN_ORDERS_CHANNEL, ConnectionManager, order_channel
from campus_order.models.order import Order

logger = structlog.get_logger(__name__)
router = APIRouter()


def resolve_socket_identity(websocket: WebSocket, token: Optional[str]) -> Optional[SessionIdentity]:
    """Session from the `token` query param, falling back to header or cookie"""
    resolver = websocket.app.state.session_resolver
    if token:
        return resolver.decode(token)
    return resolver.resolve(websocket)


def can_watch_admin_feed(session_factory: Callable, identity: Optional[SessionIdentity]) -> bool:
    with session_factory() as session:
        return load_active_admin(session, identity) is not None


def can_watch_order(session_factory: Callable, identity: Optional[SessionIdentity], display_id: str) -> bool:
    """Order owners and active admins may follow an order"""
    if identity is None:
        return False
    with session_factory() as session:
        order = session.exec(select(Order).where(Order.display_id == display_id)).first()
        if order is None:
            return False
        return order.user_id == identity.user_id or load_active_admin(session, identity) is not None


async def listen(websocket: WebSocket, manager: ConnectionManager, channel: str):
    """Answer pings until the client goes away"""
    await websocket.send_json({"type": "connection_confirmed", "channel": channel})
    try:
        while True:
            data = await websocket.receive_json()
            if data.get("type") == "ping":
                await websocket.send_json({
                    "type": "pong",
                    "timestamp": datetime.utcnow().isoformat()
                })
    except WebSocketDisconnect:
        logger.info(f"Client left channel {channel}")
    finally:
        manager.disconnect(websocket)


@router.websocket("/admin/orders")
async def websocket_admin_orders(
    websocket: WebSocket,
    token: Optional[str] = None,
    session_factory: Callable = Depends(get_session_factory),
):
    """Live order feed for the back office"""
    identity = resolve_socket_identity(websocket, token)
    if not await run_in_threadpool(can_watch_admin_feed, session_factory, identity):
        logger.warning("Rejected admin order feed connection")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager: ConnectionManager = websocket.app.state.ws_manager
    await manager.connect(websocket, ADMIN_ORDERS_CHANNEL)
    await listen(websocket, manager, ADMIN_ORDERS_CHANNEL)


@router.websocket("/orders/{display_id}")
async def websocket_order(
    websocket: WebSocket,
    display_id: str,
    token: Optional[str] = None,
    session_factory: Callable = Depends(get_session_factory),
):
    """Status updates for a single order; open to its owner and to admins"""
    identity = resolve_socket_identity(websocket, token)
    if not await run_in_threadpool(can_watch_order, session_factory, identity, display_id):
        logger.warning(f"Rejected order feed connection for {display_id}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager: ConnectionManager = websocket.app.state.ws_manager
    channel = order_channel(display_id)
    await manager.connect(websocket, channel)
    await listen(websocket, manager, channel)
