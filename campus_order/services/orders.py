"""
Order lifecycle

Checkout snapshots the active cart into an Order with computed totals and a
per-day display id (`OR0001`, `OR0002`, ... reset each local day). Status
changes go through Order.transition_to, are recorded as OrderEvent rows and
queued as domain events for the caller to publish after the commit.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import uuid
import structlog

from campus_order.core.config import Settings
from campus_order.core.errors import Conflict, InvalidPayload, NotFound
from campus_order.core.events import DomainEvent, OrderClosed, OrderStatusChanged, OrderSubmitted
from campus_order.models.admin import Admin
from campus_order.models.cart import CartItemChoice, CartStatus
from campus_order.models.order import (
    DeliveryMode, Order, OrderActorType, OrderEvent, OrderItem, OrderPayment,
    OrderPaymentStatus, OrderPaymentType, OrderStatus,
)
from campus_order.models.promptpay_account import PromptPayAccount
from campus_order.models.user import User
from campus_order.schemas.order import CheckoutRequest, DeliverySelection
from campus_order.services.cart import CartService
from campus_order.services.delivery import DeliveryLocationService
from campus_order.services.promptpay import PromptPayAccountService, build_promptpay_payload, format_phone_for_display
from campus_order.services.totals import compute_order_totals

logger = structlog.get_logger(__name__)

MAX_DISPLAY_ID_ATTEMPTS = 5
ORDER_NOT_FOUND = "Order not found"

REVIEW_STATUS = {
    OrderPaymentType.FOOD: OrderStatus.FOOD_PAYMENT_REVIEW,
    OrderPaymentType.DELIVERY: OrderStatus.DELIVERY_PAYMENT_REVIEW,
}
AWAITING_STATUS = {
    OrderPaymentType.FOOD: OrderStatus.AWAITING_FOOD_PAYMENT,
    OrderPaymentType.DELIVERY: OrderStatus.AWAITING_DELIVERY_FEE_PAYMENT,
}
VERIFIED_STATUS = {
    OrderPaymentType.FOOD: OrderStatus.ORDER_IN_KITCHEN,
    OrderPaymentType.DELIVERY: OrderStatus.DELIVERED,
}


def format_display_id(prefix: str, counter: int) -> str:
    return f"{prefix}{counter:04d}"


def business_day(timezone: str, now: Optional[datetime] = None) -> date:
    """Local calendar day used for display id counters"""
    current = now or datetime.now(tz=ZoneInfo("UTC"))
    return current.astimezone(ZoneInfo(timezone)).date()


def serialize_payment(payment: OrderPayment, account: Optional[PromptPayAccount] = None) -> Dict[str, Any]:
    data = {
        "id": str(payment.id),
        "type": payment.type,
        "amount": payment.amount,
        "status": payment.status,
        "receiptUrl": payment.receipt_url,
        "receiptUploadedAt": payment.receipt_uploaded_at.isoformat() if payment.receipt_uploaded_at else None,
        "verifiedAt": payment.verified_at.isoformat() if payment.verified_at else None,
        "rejectedReason": payment.rejected_reason,
        "rejectionCount": payment.rejection_count,
        "promptPay": None,
    }
    if account is not None:
        data["promptPay"] = {
            "accountName": account.name,
            "phoneNumber": account.phone_number,
            "displayPhone": format_phone_for_display(account.phone_number),
            "payload": build_promptpay_payload(account.phone_number, payment.amount),
        }
    return data


def serialize_order_item(item: OrderItem) -> Dict[str, Any]:
    return {
        "id": str(item.id),
        "menuItemId": str(item.menu_item_id) if item.menu_item_id else None,
        "menuCode": item.menu_code,
        "name": item.name_en,
        "nameMm": item.name_mm,
        "basePrice": item.base_price,
        "addonsTotal": item.addons_total,
        "quantity": item.quantity,
        "totalPrice": item.total_price,
        "note": item.note,
        "choices": item.choices or [],
    }


def serialize_order_event(event: OrderEvent) -> Dict[str, Any]:
    return {
        "id": str(event.id),
        "eventType": event.event_type,
        "fromStatus": event.from_status,
        "toStatus": event.to_status,
        "actorType": event.actor_type,
        "note": event.note,
        "createdAt": event.created_at.isoformat(),
    }


class OrderService:
    """Customer checkout and admin order handling"""

    def __init__(self, session: Session, cart_service: CartService, settings: Settings):
        self.session = session
        self.cart_service = cart_service
        self.settings = settings
        self.events: List[DomainEvent] = []

    # Lookups

    def get_by_display_id(self, display_id: str) -> Order:
        order = self.session.exec(select(Order).where(Order.display_id == display_id.upper())).first()
        if order is None:
            raise NotFound(ORDER_NOT_FOUND)
        return order

    def get_for_user(self, user_id: uuid.UUID, display_id: str) -> Order:
        order = self.get_by_display_id(display_id)
        if order.user_id != user_id:
            raise NotFound(ORDER_NOT_FOUND)
        return order

    def list_for_user(self, user_id: uuid.UUID) -> List[Order]:
        return list(self.session.exec(
            select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        ).all())

    def list_orders(self, status: Optional[str] = None, include_closed: bool = True, limit: int = 100) -> List[Order]:
        query = select(Order).order_by(Order.created_at.desc()).limit(limit)
        if status:
            query = query.where(Order.status == status)
        if not include_closed:
            query = query.where(Order.is_closed == False)  # noqa: E712
        return list(self.session.exec(query).all())

    def get_payment(self, order: Order, payment_type: OrderPaymentType) -> Optional[OrderPayment]:
        return self.session.exec(
            select(OrderPayment).where(OrderPayment.order_id == order.id, OrderPayment.type == payment_type.value)
        ).first()

    def serialize(self, order: Order, include_events: bool = False) -> Dict[str, Any]:
        items = self.session.exec(
            select(OrderItem).where(OrderItem.order_id == order.id).order_by(OrderItem.display_order)
        ).all()
        payments = self.session.exec(
            select(OrderPayment).where(OrderPayment.order_id == order.id).order_by(OrderPayment.created_at)
        ).all()
        account_ids = {payment.promptpay_account_id for payment in payments if payment.promptpay_account_id}
        accounts = {}
        if account_ids:
            accounts = {
                account.id: account
                for account in self.session.exec(
                    select(PromptPayAccount).where(PromptPayAccount.id.in_(account_ids))
                ).all()
            }
        totals = compute_order_totals(
            order.subtotal,
            vat_amount=order.vat_amount,
            delivery_fee=order.delivery_fee,
            discount_total=order.discount_total,
        )
        data = {
            "id": str(order.id),
            "displayId": order.display_id,
            "status": order.status,
            "isClosed": order.is_closed,
            "customerName": order.customer_name,
            "customerPhone": order.customer_phone,
            "delivery": {
                "mode": order.delivery_mode,
                "locationId": str(order.delivery_location_id) if order.delivery_location_id else None,
                "buildingId": str(order.delivery_building_id) if order.delivery_building_id else None,
                "locationName": order.delivery_location_name,
                "buildingLabel": order.delivery_building_label,
            },
            "orderNote": order.order_note,
            "adminNote": order.admin_note,
            "cancelReason": order.cancel_reason,
            "totals": totals.to_dict(),
            "deliveryFeeSet": order.delivery_fee is not None,
            "items": [serialize_order_item(item) for item in items],
            "payments": [serialize_payment(payment, accounts.get(payment.promptpay_account_id)) for payment in payments],
            "createdAt": order.created_at.isoformat(),
            "updatedAt": order.updated_at.isoformat() if order.updated_at else None,
            "closedAt": order.closed_at.isoformat() if order.closed_at else None,
        }
        if include_events:
            events = self.session.exec(
                select(OrderEvent).where(OrderEvent.order_id == order.id).order_by(OrderEvent.created_at)
            ).all()
            data["events"] = [serialize_order_event(event) for event in events]
        return data

    # Checkout

    def _resolve_delivery(self, selection: DeliverySelection) -> Dict[str, Any]:
        if selection.mode == DeliveryMode.CUSTOM.value:
            return {
                "delivery_mode": DeliveryMode.CUSTOM.value,
                "delivery_location_name": selection.custom_condo_name,
                "delivery_building_label": selection.custom_building_name,
            }

        locations = DeliveryLocationService(self.session)
        location = locations.get_location(selection.location_id)
        if not location.is_active:
            raise NotFound("Delivery location not found")
        building = locations.resolve_building(location, selection.building_id) if selection.building_id else None
        return {
            "delivery_mode": DeliveryMode.PRESET.value,
            "delivery_location_id": location.id,
            "delivery_location_name": location.condo_name,
            "delivery_building_id": building.id if building else None,
            "delivery_building_label": building.label if building else None,
        }

    def _next_counter(self, day: date) -> int:
        current = self.session.exec(select(func.max(Order.display_counter)).where(Order.display_day == day)).one()
        return (current or 0) + 1

    def create_order(self, user: User, request: CheckoutRequest) -> Order:
        """Turn the user's active cart into an order"""
        self.cart_service.shop_gate.ensure_open()

        phone = request.customer_phone or user.phone_number
        if not phone:
            raise InvalidPayload("Phone number is required")
        delivery = self._resolve_delivery(request.delivery_selection)
        user_id, user_name, user_email = user.id, user.name, user.email

        for attempt in range(1, MAX_DISPLAY_ID_ATTEMPTS + 1):
            cart = self.cart_service.get_active_cart(user_id)
            lines = self.cart_service.get_lines(cart.id) if cart else []
            if not lines:
                raise InvalidPayload("Your cart is empty")
            choices = self.cart_service.get_line_choices([line.id for line in lines])

            totals = compute_order_totals(
                sum(line.total_price for line in lines),
                vat_percent=self.settings.VAT_PERCENT,
            )
            day = business_day(self.settings.TIMEZONE)
            counter = self._next_counter(day)
            order = Order(
                display_id=format_display_id(self.settings.DISPLAY_ID_PREFIX, counter),
                display_day=day,
                display_counter=counter,
                user_id=user_id,
                cart_id=cart.id,
                customer_name=user_name,
                customer_email=user_email,
                customer_phone=phone,
                order_note=request.order_note,
                subtotal=totals.food_subtotal,
                vat_amount=totals.vat_amount,
                food_total=totals.food_total,
                discount_total=totals.discount_total,
                total_amount=totals.total_amount,
                **delivery,
            )
            self.session.add(order)
            try:
                self.session.flush()
            except IntegrityError:
                self.session.rollback()
                logger.warning(f"Display id collision on attempt {attempt} for day {day}")
                continue

            for position, line in enumerate(lines):
                self.session.add(OrderItem(
                    order_id=order.id,
                    menu_item_id=line.menu_item_id,
                    menu_code=line.menu_code,
                    name_en=line.menu_item_name,
                    name_mm=line.menu_item_name_mm,
                    base_price=line.base_price,
                    addons_total=line.addons_total,
                    quantity=line.quantity,
                    total_price=line.total_price,
                    note=line.note,
                    choices=[self._snapshot_choice(choice) for choice in choices.get(line.id, [])],
                    display_order=position,
                ))
                for choice in choices.get(line.id, []):
                    self.session.delete(choice)
                self.session.delete(line)

            cart.status = CartStatus.SUBMITTED.value
            cart.subtotal = 0
            cart.updated_at = datetime.utcnow()
            self.session.add(cart)
            self.session.add(OrderEvent(
                order_id=order.id,
                event_type="order_submitted",
                to_status=order.status,
                actor_type=OrderActorType.CUSTOMER.value,
                actor_id=user_id,
            ))
            self.session.commit()
            self.session.refresh(order)

            self.events.append(OrderSubmitted(
                order_id=order.id,
                display_id=order.display_id,
                user_id=order.user_id,
                status=order.status,
                total_amount=order.total_amount,
                customer_name=order.customer_name,
            ))
            logger.info(f"Order {order.display_id} created for user {user_id} total {order.total_amount}")
            return order

        logger.error(f"Could not allocate a display id after {MAX_DISPLAY_ID_ATTEMPTS} attempts")
        raise Conflict("Could not place the order, please try again")

    @staticmethod
    def _snapshot_choice(choice: CartItemChoice) -> Dict[str, Any]:
        return {
            "poolLinkId": str(choice.pool_link_id),
            "optionId": str(choice.option_id),
            "groupName": choice.group_name,
            "groupNameMm": choice.group_name_mm,
            "optionName": choice.option_name,
            "optionNameMm": choice.option_name_mm,
            "menuCode": choice.menu_code,
            "extraPrice": choice.extra_price,
            "selectionRole": choice.selection_role,
        }

    # Transitions

    def _transition(
        self,
        order: Order,
        target: OrderStatus,
        actor_type: OrderActorType,
        actor_id: Optional[uuid.UUID],
        event_type: str,
        note: Optional[str] = None,
    ):
        if order.is_closed:
            raise InvalidPayload("Order is already closed")
        try:
            previous = order.transition_to(target)
        except ValueError as e:
            raise InvalidPayload(str(e))

        self.session.add(order)
        self.session.add(OrderEvent(
            order_id=order.id,
            event_type=event_type,
            from_status=previous.value,
            to_status=target.value,
            actor_type=actor_type.value,
            actor_id=actor_id,
            note=note,
        ))
        self.events.append(OrderStatusChanged(
            order_id=order.id,
            display_id=order.display_id,
            user_id=order.user_id,
            status=target.value,
            from_status=previous.value,
            actor_type=actor_type.value,
            customer_email=order.customer_email,
            note=note,
        ))
        if order.is_closed:
            self.events.append(OrderClosed(
                order_id=order.id,
                display_id=order.display_id,
                user_id=order.user_id,
                status=target.value,
            ))
        logger.info(f"Order {order.display_id} moved {previous.value} -> {target.value} by {actor_type.value}")

    def _commit(self, order: Order) -> Order:
        self.session.commit()
        self.session.refresh(order)
        return order

    def cancel_by_customer(self, user_id: uuid.UUID, display_id: str, reason: Optional[str] = None) -> Order:
        order = self.get_for_user(user_id, display_id)
        if not order.can_cancel_by_customer():
            raise InvalidPayload("This order can no longer be cancelled")
        order.cancel_reason = reason
        self._transition(order, OrderStatus.CANCELLED, OrderActorType.CUSTOMER, user_id, "order_cancelled", reason)
        return self._commit(order)

    def upload_receipt(
        self,
        user_id: uuid.UUID,
        display_id: str,
        payment_type: OrderPaymentType,
        receipt_url: str,
    ) -> Order:
        """Attach a transfer receipt and move the order into review"""
        order = self.get_for_user(user_id, display_id)
        payment = self.get_payment(order, payment_type)
        if payment is None or order.status_enum != AWAITING_STATUS[payment_type]:
            raise InvalidPayload("This order is not waiting for that payment")
        if payment.status not in (OrderPaymentStatus.PENDING.value, OrderPaymentStatus.REJECTED.value):
            raise InvalidPayload("A receipt has already been submitted")

        now = datetime.utcnow()
        payment.receipt_url = receipt_url
        payment.receipt_uploaded_at = now
        payment.status = OrderPaymentStatus.RECEIPT_UPLOADED.value
        payment.updated_at = now
        self.session.add(payment)
        self._transition(
            order, REVIEW_STATUS[payment_type], OrderActorType.CUSTOMER, user_id, f"{payment_type.value}_receipt_uploaded",
        )
        return self._commit(order)

    def _open_payment(self, order: Order, payment_type: OrderPaymentType, amount: int) -> OrderPayment:
        """Payment due to the PromptPay account active right now"""
        account = PromptPayAccountService(self.session).get_active()
        if account is None:
            logger.warning(f"No active PromptPay account for {payment_type.value} payment on {order.display_id}")
        payment = OrderPayment(
            order_id=order.id,
            type=payment_type.value,
            amount=amount,
            promptpay_account_id=account.id if account else None,
        )
        self.session.add(payment)
        return payment

    def accept(self, order: Order, admin: Admin) -> Order:
        """Accept a new order and open the food payment"""
        self._transition(order, OrderStatus.AWAITING_FOOD_PAYMENT, OrderActorType.ADMIN, admin.id, "order_accepted")
        self._open_payment(order, OrderPaymentType.FOOD, max(0, order.food_total - order.discount_total))
        return self._commit(order)

    def cancel(self, order: Order, admin: Admin, reason: Optional[str] = None) -> Order:
        order.cancel_reason = reason
        self._transition(order, OrderStatus.CANCELLED, OrderActorType.ADMIN, admin.id, "order_cancelled", reason)
        return self._commit(order)

    def verify_payment(self, order: Order, admin: Admin, payment_type: OrderPaymentType) -> Order:
        """Confirm a receipt; food goes to the kitchen, delivery closes the order"""
        if order.is_closed:
            raise InvalidPayload("Order is already closed")
        if order.status_enum != REVIEW_STATUS[payment_type]:
            raise InvalidPayload(f"Order is not awaiting {payment_type.value} payment review")
        payment = self.get_payment(order, payment_type)
        if payment is None or payment.status != OrderPaymentStatus.RECEIPT_UPLOADED.value:
            raise InvalidPayload("There is no receipt to verify")

        now = datetime.utcnow()
        payment.status = OrderPaymentStatus.VERIFIED.value
        payment.verified_at = now
        payment.verified_by_admin_id = admin.id
        payment.updated_at = now
        self.session.add(payment)
        self._transition(
            order, VERIFIED_STATUS[payment_type], OrderActorType.ADMIN, admin.id, f"{payment_type.value}_payment_verified",
        )
        return self._commit(order)

    def reject_payment(
        self,
        order: Order,
        admin: Admin,
        payment_type: OrderPaymentType,
        reason: Optional[str] = None,
    ) -> Order:
        """Send the customer back to upload another receipt"""
        if order.is_closed:
            raise InvalidPayload("Order is already closed")
        if order.status_enum != REVIEW_STATUS[payment_type]:
            raise InvalidPayload(f"Order is not awaiting {payment_type.value} payment review")
        payment = self.get_payment(order, payment_type)
        if payment is None or payment.status != OrderPaymentStatus.RECEIPT_UPLOADED.value:
            raise InvalidPayload("There is no receipt to reject")

        payment.status = OrderPaymentStatus.REJECTED.value
        payment.rejected_reason = reason
        payment.rejection_count += 1
        payment.updated_at = datetime.utcnow()
        self.session.add(payment)
        self._transition(
            order, AWAITING_STATUS[payment_type], OrderActorType.ADMIN, admin.id,
            f"{payment_type.value}_payment_rejected", reason,
        )
        return self._commit(order)

    def handoff(self, order: Order, admin: Admin, delivery_fee: int, admin_note: Optional[str] = None) -> Order:
        """Set the delivery fee once the food is ready"""
        if order.status_enum != OrderStatus.ORDER_IN_KITCHEN:
            raise InvalidPayload("Only orders in the kitchen can be handed off")

        totals = compute_order_totals(
            order.subtotal,
            vat_amount=order.vat_amount,
            delivery_fee=delivery_fee,
            discount_total=order.discount_total,
        )
        order.delivery_fee = totals.delivery_fee
        order.total_amount = totals.total_amount
        if admin_note is not None:
            order.admin_note = admin_note

        if totals.delivery_fee > 0:
            self._transition(
                order, OrderStatus.AWAITING_DELIVERY_FEE_PAYMENT, OrderActorType.ADMIN, admin.id, "delivery_fee_set",
            )
            self._open_payment(order, OrderPaymentType.DELIVERY, totals.delivery_fee)
        else:
            self._transition(
                order, OrderStatus.ORDER_OUT_FOR_DELIVERY, OrderActorType.ADMIN, admin.id, "out_for_delivery",
            )
        return self._commit(order)

    def mark_delivered(self, order: Order, admin: Admin) -> Order:
        if order.status_enum != OrderStatus.ORDER_OUT_FOR_DELIVERY:
            raise InvalidPayload("Only orders out for delivery can be marked delivered")
        self._transition(order, OrderStatus.DELIVERED, OrderActorType.ADMIN, admin.id, "order_delivered")
        return self._commit(order)


def delete_closed_orders(session: Session, retention_days: int, limit: int) -> int:
    """Delete up to `limit` closed orders whose closed_at is older than the retention window"""
    cutoff = datetime.utcnow() - timedelta(days=retention_days)
    orders = session.exec(
        select(Order)
        .where(Order.is_closed == True, Order.closed_at < cutoff)  # noqa: E712
        .order_by(Order.closed_at)
        .limit(limit)
    ).all()
    if not orders:
        return 0

    order_ids = [order.id for order in orders]
    for model in (OrderItem, OrderEvent, OrderPayment):
        for row in session.exec(select(model).where(model.order_id.in_(order_ids))).all():
            session.delete(row)
    session.flush()
    for order in orders:
        session.delete(order)
    session.commit()
    logger.info(f"Deleted {len(orders)} closed orders older than {retention_days} days")
    return len(orders)
