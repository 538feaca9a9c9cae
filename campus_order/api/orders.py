"""
Customer order endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from typing import Literal

from campus_order.core.dependencies import get_event_bus, get_order_service, require_user
from campus_order.core.events import EventBus, schedule_events
from campus_order.models.order import OrderPaymentType
from campus_order.models.user import User
from campus_order.schemas.order import CancelOrderRequest, CheckoutRequest, ReceiptUpload
from campus_order.services.orders import OrderService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_user),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Place an order from the active cart"""
    order = orders.create_order(user, payload)
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}


@router.get("")
def list_my_orders(user: User = Depends(require_user), orders: OrderService = Depends(get_order_service)):
    return {"orders": [orders.serialize(order) for order in orders.list_for_user(user.id)]}


@router.get("/{display_id}")
def get_my_order(display_id: str, user: User = Depends(require_user), orders: OrderService = Depends(get_order_service)):
    order = orders.get_for_user(user.id, display_id)
    return {"order": orders.serialize(order, include_events=True)}


@router.post("/{display_id}/cancel")
def cancel_my_order(
    display_id: str,
    payload: CancelOrderRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_user),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    order = orders.cancel_by_customer(user.id, display_id, payload.reason)
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}


@router.post("/{display_id}/payments/{payment_type}/receipt")
def upload_payment_receipt(
    display_id: str,
    payment_type: Literal["food", "delivery"],
    payload: ReceiptUpload,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_user),
    orders: OrderService = Depends(get_order_service),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Record the uploaded transfer receipt for a payment"""
    order = orders.upload_receipt(user.id, display_id, OrderPaymentType(payment_type), payload.receipt_url)
    schedule_events(background_tasks, event_bus, orders.events)
    return {"order": orders.serialize(order)}
