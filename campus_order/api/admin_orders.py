"""
Admin order handling endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from typing import Optional

from campus_order.core.dependencies import get_event_bus, get_order_service, require_permission
from campus_order.core.events import EventBus, schedule_events
from campus_order.core.errors import Forbidden
from campus_order.core.permissions import Permission, has_permission
from campus_order.models.admin import Admin
from campus_order.models.order import OrderPaymentType
from campus_order.schemas.order import (
    HandoffRequest, OrderStatusAction, RejectPaymentRequest, VerifyPaymentRequest,
)
from campus_order.services.orders import OrderService

router = APIRouter()


@router.get("")
def list_orders(
    status: Optional[str] = Query(None, description="Filter by order status"),
    include_closed: bool = Query(True, alias="includeClosed", description="Include delivered and cancelled orders"),
    limit: int = Query(100, description="Maximum orders returned, capped at 500"),
    admin: Admin = Depends(require_permission(Permission.ORDER_VIEW)),
    orders: OrderService = Depends(get_order_service),
):
    limit = max(1, min(limit, 500))
    return {"orders": [orders.serialize(order) for order in orders.list_orders(status, include_closed, limit)]}


@router.get("/{display_id}")
def get_order(
    display_id: str,
    admin: Admin = Depends(require_permission(Permission.ORDER_VIEW)),
    orders: OrderService = Depends(get_order_service),
):
    return {"order": orders.serialize(orders.get_by_display_id(display_id), include_events=True)}


@router.patch("/{display_id}/status")
def change_order_status(
    display_id: str,
    payload: OrderStatusAction,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_permission(Permission.ORDER_VIEW)),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Accept or cancel an order"""
    required = Permission.ORDER_ACCEPT if payload.action == "accept" else Permission.ORDER_CANCEL
    if not has_permission(admin.role, required):
        raise Forbidden(f"Permission required: {required.value}")

    order = orders.get_by_display_id(display_id)
    if payload.action == "accept":
        order = orders.accept(order, admin)
    else:
        order = orders.cancel(order, admin, payload.reason)
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}


@router.post("/{display_id}/verify-payment")
def verify_payment(
    display_id: str,
    payload: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_permission(Permission.ORDER_VERIFY_PAYMENT)),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    order = orders.verify_payment(orders.get_by_display_id(display_id), admin, OrderPaymentType(payload.type))
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}


@router.post("/{display_id}/reject-payment")
def reject_payment(
    display_id: str,
    payload: RejectPaymentRequest,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_permission(Permission.ORDER_REJECT_PAYMENT)),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    order = orders.reject_payment(
        orders.get_by_display_id(display_id), admin, OrderPaymentType(payload.type), payload.reason,
    )
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}


@router.post("/{display_id}/handoff")
def handoff_order(
    display_id: str,
    payload: HandoffRequest,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_permission(Permission.ORDER_HANDOFF)),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Set the delivery fee and send the order out"""
    order = orders.handoff(orders.get_by_display_id(display_id), admin, payload.delivery_fee, payload.admin_note)
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}


@router.post("/{display_id}/deliver")
def deliver_order(
    display_id: str,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_permission(Permission.ORDER_DELIVER)),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    order = orders.mark_delivered(orders.get_by_display_id(display_id), admin)
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}
