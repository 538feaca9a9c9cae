"""
Customer notifications for order status changes
"""

from typing import Dict
import html
import structlog

from campus_order.core.events import EventBus, OrderStatusChanged
from campus_order.models.order import OrderStatus
from campus_order.services.email import EmailClient

logger = structlog.get_logger(__name__)

STATUS_MESSAGES: Dict[str, str] = {
    OrderStatus.AWAITING_FOOD_PAYMENT.value: "Your order was accepted. Please pay for your food and upload the receipt.",
    OrderStatus.ORDER_IN_KITCHEN.value: "Payment received. Your food is being prepared.",
    OrderStatus.AWAITING_DELIVERY_FEE_PAYMENT.value: "Your food is ready. Please pay the delivery fee.",
    OrderStatus.ORDER_OUT_FOR_DELIVERY.value: "Your order is on its way.",
    OrderStatus.DELIVERED.value: "Your order was delivered. Enjoy your meal!",
    OrderStatus.CANCELLED.value: "Your order was cancelled.",
}


class OrderNotifier:
    """Emails customers when an admin moves their order forward"""

    def __init__(self, email_client: EmailClient, app_base_url: str):
        self.email_client = email_client
        self.app_base_url = app_base_url.rstrip("/")

    async def on_status_changed(self, event: OrderStatusChanged):
        if event.actor_type != "admin" or not event.customer_email:
            return
        message = STATUS_MESSAGES.get(event.status)
        if message is None:
            return

        order_url = f"{self.app_base_url}/orders/{event.display_id}"
        body = f"<p>{message}</p><p><a href=\"{order_url}\">View order {event.display_id}</a></p>"
        if event.note:
            body += f"<p>Note from the shop: {html.escape(event.note)}</p>"
        await self.email_client.send(
            event.customer_email,
            f"Order {event.display_id} update",
            body,
            text=f"{message}\n{order_url}\n",
        )

    def register(self, event_bus: EventBus):
        event_bus.subscribe(OrderStatusChanged, self.on_status_changed)
