"""
Domain events system

Domain events describe order and shop changes. They are published on an
in-process bus after the database commit; subscribers push them to
WebSocket channels and customer email.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type
import uuid
import structlog

logger = structlog.get_logger(__name__)


class DomainEvent:
    """Base class for domain events"""

    name = "event"

    def __init__(self, event_id: uuid.UUID = None):
        self.event_id = event_id or uuid.uuid4()
        self.occurred_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "eventId": str(self.event_id),
            "occurredAt": self.occurred_at.isoformat(),
            "event": self.name,
        }


class OrderEventBase(DomainEvent):
    """Common fields for events about a single order"""

    def __init__(
        self,
        order_id: uuid.UUID,
        display_id: str,
        user_id: uuid.UUID,
        status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.display_id = display_id
        self.user_id = user_id
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "orderId": str(self.order_id),
            "displayId": self.display_id,
            "status": self.status,
        })
        return data


class OrderSubmitted(OrderEventBase):
    """Event fired when a customer checks out a cart"""

    name = "order.submitted"

    def __init__(
        self,
        order_id: uuid.UUID,
        display_id: str,
        user_id: uuid.UUID,
        status: str,
        total_amount: int,
        customer_name: Optional[str] = None,
        event_id: uuid.UUID = None
    ):
        super().__init__(order_id, display_id, user_id, status, event_id)
        self.total_amount = total_amount
        self.customer_name = customer_name

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "totalAmount": self.total_amount,
            "customerName": self.customer_name,
        })
        return data


class OrderStatusChanged(OrderEventBase):
    """Event fired on every order status transition"""

    name = "order.status.changed"

    def __init__(
        self,
        order_id: uuid.UUID,
        display_id: str,
        user_id: uuid.UUID,
        status: str,
        from_status: str,
        actor_type: str,
        customer_email: Optional[str] = None,
        note: Optional[str] = None,
        event_id: uuid.UUID = None
    ):
        super().__init__(order_id, display_id, user_id, status, event_id)
        self.from_status = from_status
        self.actor_type = actor_type
        self.customer_email = customer_email
        self.note = note

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "fromStatus": self.from_status,
            "actorType": self.actor_type,
            "note": self.note,
        })
        return data


class OrderClosed(OrderEventBase):
    """Event fired when an order reaches delivered or cancelled"""

    name = "order.closed"


class ShopStatusChanged(DomainEvent):
    """Event fired when an admin opens or closes the shop"""

    name = "shop.status.changed"

    def __init__(
        self,
        is_open: bool,
        closed_message_en: Optional[str],
        closed_message_mm: Optional[str],
        updated_by: Optional[uuid.UUID],
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.is_open = is_open
        self.closed_message_en = closed_message_en
        self.closed_message_mm = closed_message_mm
        self.updated_by = updated_by

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "isOpen": self.is_open,
            "closedMessageEn": self.closed_message_en,
            "closedMessageMm": self.closed_message_mm,
        })
        return data


Handler = Callable[[DomainEvent], Awaitable[None]]


class EventBus:
    """In-process bus keyed by event class.

    A handler subscribed to a base class also receives its subclasses, so
    subscribing to OrderEventBase covers every order event.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: Handler):
        self._handlers.setdefault(event_class, []).append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__qualname__', handler)} to {event_class.__name__}")

    def unsubscribe(self, event_class: Type[DomainEvent], handler: Handler):
        handlers = self._handlers.get(event_class)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event: DomainEvent) -> List[Handler]:
        """Handlers for the event's class and its bases, most specific first"""
        matched = []
        for event_class in type(event).__mro__:
            matched.extend(self._handlers.get(event_class, ()))
        return matched

    async def publish(self, event: DomainEvent):
        """Deliver one event; a failing handler is logged and the rest still run"""
        handlers = self.handlers_for(event)
        if not handlers:
            logger.debug(f"No subscribers for {event.name}")
            return

        logger.info(f"Publishing {event.name} {event.event_id} to {len(handlers)} handlers")
        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Handler failed for {event.name}: {e}", exc_info=True)

    async def publish_all(self, events: List[DomainEvent]):
        """Deliver events in the order they were raised"""
        for event in events:
            await self.publish(event)

    def clear_subscribers(self):
        self._handlers.clear()


def schedule_events(background_tasks, event_bus: EventBus, events: List[DomainEvent]):
    """Publish events after the response has been sent"""
    if events:
        background_tasks.add_task(event_bus.publish_all, list(events))
