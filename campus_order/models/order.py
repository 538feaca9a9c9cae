"""
Order models

Order status lifecycle:

    order_processing -> awaiting_food_payment -> food_payment_review -> order_in_kitchen
    order_in_kitchen -> awaiting_delivery_fee_payment -> delivery_payment_review -> delivered
    order_in_kitchen -> order_out_for_delivery -> delivered

Rejected receipts send a review status back to its awaiting-payment status.
Any open order can be cancelled.
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON, UniqueConstraint
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from enum import Enum
import uuid


class OrderStatus(str, Enum):
    """Order status states"""
    ORDER_PROCESSING = "order_processing"
    AWAITING_FOOD_PAYMENT = "awaiting_food_payment"
    FOOD_PAYMENT_REVIEW = "food_payment_review"
    ORDER_IN_KITCHEN = "order_in_kitchen"
    AWAITING_DELIVERY_FEE_PAYMENT = "awaiting_delivery_fee_payment"
    DELIVERY_PAYMENT_REVIEW = "delivery_payment_review"
    ORDER_OUT_FOR_DELIVERY = "order_out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


CLOSED_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

ALLOWED_TRANSITIONS: Dict[OrderStatus, set] = {
    OrderStatus.ORDER_PROCESSING: {OrderStatus.AWAITING_FOOD_PAYMENT, OrderStatus.CANCELLED},
    OrderStatus.AWAITING_FOOD_PAYMENT: {OrderStatus.FOOD_PAYMENT_REVIEW, OrderStatus.CANCELLED},
    OrderStatus.FOOD_PAYMENT_REVIEW: {
        OrderStatus.ORDER_IN_KITCHEN,
        OrderStatus.AWAITING_FOOD_PAYMENT,
        OrderStatus.CANCELLED,
    },
    OrderStatus.ORDER_IN_KITCHEN: {
        OrderStatus.AWAITING_DELIVERY_FEE_PAYMENT,
        OrderStatus.ORDER_OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    },
    OrderStatus.AWAITING_DELIVERY_FEE_PAYMENT: {OrderStatus.DELIVERY_PAYMENT_REVIEW, OrderStatus.CANCELLED},
    OrderStatus.DELIVERY_PAYMENT_REVIEW: {
        OrderStatus.DELIVERED,
        OrderStatus.AWAITING_DELIVERY_FEE_PAYMENT,
        OrderStatus.CANCELLED,
    },
    OrderStatus.ORDER_OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class OrderPaymentType(str, Enum):
    FOOD = "food"
    DELIVERY = "delivery"


class OrderPaymentStatus(str, Enum):
    PENDING = "pending"
    RECEIPT_UPLOADED = "receipt_uploaded"
    VERIFIED = "verified"
    REJECTED = "rejected"


class OrderActorType(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


class DeliveryMode(str, Enum):
    PRESET = "preset"
    CUSTOM = "custom"


class Order(SQLModel, table=True):
    """Customer order created from a checked out cart"""

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("display_day", "display_counter", name="uq_orders_display_day_counter"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    display_id: str = Field(unique=True, index=True, max_length=16, description="Human readable id, e.g. OR0007")
    display_day: date = Field(index=True, description="Local business day the counter belongs to")
    display_counter: int = Field(ge=1)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    cart_id: Optional[uuid.UUID] = Field(default=None, description="Cart the order was created from")
    status: str = Field(default=OrderStatus.ORDER_PROCESSING.value, max_length=40, index=True)

    # Customer and delivery snapshot
    customer_name: str = Field(max_length=120)
    customer_email: Optional[str] = Field(default=None, max_length=255)
    customer_phone: str = Field(max_length=32)
    delivery_mode: str = Field(default=DeliveryMode.PRESET.value, max_length=16)
    delivery_location_id: Optional[uuid.UUID] = Field(default=None)
    delivery_building_id: Optional[uuid.UUID] = Field(default=None)
    delivery_location_name: Optional[str] = Field(default=None, max_length=120)
    delivery_building_label: Optional[str] = Field(default=None, max_length=60)
    order_note: Optional[str] = Field(default=None, max_length=500)

    # Totals (integer minor currency unit)
    subtotal: int = Field(default=0, ge=0, description="Food subtotal")
    vat_amount: int = Field(default=0, ge=0)
    food_total: int = Field(default=0, ge=0)
    delivery_fee: Optional[int] = Field(default=None, ge=0, description="Set by admin at handoff")
    discount_total: int = Field(default=0, ge=0)
    total_amount: int = Field(default=0, ge=0)

    # Admin annotations
    admin_note: Optional[str] = Field(default=None, max_length=500)
    cancel_reason: Optional[str] = Field(default=None, max_length=500)

    is_closed: bool = Field(default=False, index=True)
    closed_at: Optional[datetime] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def status_enum(self) -> OrderStatus:
        return OrderStatus(self.status)

    def can_transition_to(self, target: OrderStatus) -> bool:
        """Check if the order may move to target"""
        return target in ALLOWED_TRANSITIONS[self.status_enum]

    def transition_to(self, target: OrderStatus) -> OrderStatus:
        """Move the order to target; returns the previous status"""
        previous = self.status_enum
        if not self.can_transition_to(target):
            raise ValueError(f"Cannot move order {self.display_id} from {previous.value} to {target.value}")

        now = datetime.utcnow()
        self.status = target.value
        self.updated_at = now
        if target in CLOSED_STATUSES:
            self.is_closed = True
            self.closed_at = now
        return previous

    def can_cancel_by_customer(self) -> bool:
        """Customers may only cancel before the shop accepts the order"""
        return self.status_enum == OrderStatus.ORDER_PROCESSING


class OrderItem(SQLModel, table=True):
    """Snapshot of a cart line at checkout"""

    __tablename__ = "order_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    menu_item_id: Optional[uuid.UUID] = Field(default=None, description="Source menu item, kept even if it is later deleted")
    menu_code: Optional[str] = Field(default=None, max_length=32)
    name_en: str = Field(max_length=160)
    name_mm: Optional[str] = Field(default=None, max_length=160)
    base_price: int = Field(default=0, ge=0)
    addons_total: int = Field(default=0, ge=0)
    quantity: int = Field(default=1, ge=1)
    total_price: int = Field(default=0, ge=0)
    note: Optional[str] = Field(default=None, max_length=280)
    choices: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    display_order: int = Field(default=0)


class OrderEvent(SQLModel, table=True):
    """Audit trail entry for an order"""

    __tablename__ = "order_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    event_type: str = Field(max_length=40)
    from_status: Optional[str] = Field(default=None, max_length=40)
    to_status: Optional[str] = Field(default=None, max_length=40)
    actor_type: str = Field(default=OrderActorType.SYSTEM.value, max_length=16)
    actor_id: Optional[uuid.UUID] = Field(default=None)
    note: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class OrderPayment(SQLModel, table=True):
    """Food or delivery-fee payment awaiting a transfer receipt"""

    __tablename__ = "order_payments"
    __table_args__ = (UniqueConstraint("order_id", "type", name="uq_order_payments_order_type"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    type: str = Field(max_length=16, description="food or delivery")
    amount: int = Field(default=0, ge=0)
    status: str = Field(default=OrderPaymentStatus.PENDING.value, max_length=20)

    receipt_url: Optional[str] = Field(default=None, max_length=1000)
    receipt_uploaded_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    verified_by_admin_id: Optional[uuid.UUID] = None
    rejected_reason: Optional[str] = Field(default=None, max_length=500)
    rejection_count: int = Field(default=0, ge=0)
    promptpay_account_id: Optional[uuid.UUID] = Field(default=None, description="Account that was active when the payment opened")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
