"""
Sales analytics for the back office

Orders are grouped by their local display day. Money counts as collected
once its payment is verified: the food part (subtotal and VAT, less any
discount) with the food payment, the delivery fee with the delivery payment.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from sqlmodel import Session, select
import structlog

from campus_order.core.errors import InvalidPayload
from campus_order.models.order import Order, OrderPayment, OrderPaymentStatus, OrderPaymentType, OrderStatus
from campus_order.services.orders import business_day

logger = structlog.get_logger(__name__)

PERIOD_DAYS = {
    "today": 1,
    "last7": 7,
    "last30": 30,
}


@dataclass
class ReportOrder:
    """The parts of an order the report reads"""
    display_day: date
    status: str
    subtotal: int
    vat_amount: int
    delivery_fee: int
    discount_total: int
    food_paid: bool = False
    delivery_paid: bool = False

    @property
    def has_verified_payment(self) -> bool:
        return self.food_paid or self.delivery_paid


@dataclass
class SalesBreakdown:
    food: int = 0
    tax: int = 0
    delivery: int = 0
    discount: int = 0

    @property
    def gross(self) -> int:
        return self.food + self.tax + self.delivery

    @property
    def net(self) -> int:
        return max(0, self.gross - self.discount)

    def add(self, other: "SalesBreakdown"):
        self.food += other.food
        self.tax += other.tax
        self.delivery += other.delivery
        self.discount += other.discount

    def to_dict(self) -> Dict[str, int]:
        return {
            "food": self.food,
            "tax": self.tax,
            "delivery": self.delivery,
            "discount": self.discount,
            "gross": self.gross,
            "net": self.net,
        }


@dataclass
class DailySales:
    display_day: date
    order_count: int = 0
    paid_order_count: int = 0
    cancelled_order_count: int = 0
    collected: SalesBreakdown = field(default_factory=SalesBreakdown)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "displayDay": self.display_day.isoformat(),
            "orderCount": self.order_count,
            "paidOrderCount": self.paid_order_count,
            "cancelledOrderCount": self.cancelled_order_count,
            "grossSales": self.collected.gross,
            "netSales": self.collected.net,
        }


def collected_amounts(order: ReportOrder) -> SalesBreakdown:
    collected = SalesBreakdown()
    if order.food_paid:
        food = max(0, order.subtotal)
        tax = max(0, order.vat_amount)
        collected.food = food
        collected.tax = tax
        collected.discount = min(max(0, order.discount_total), food + tax)
    if order.delivery_paid:
        collected.delivery = max(0, order.delivery_fee)
    return collected


def build_sales_analytics(orders: Iterable[ReportOrder]) -> Dict[str, Any]:
    """Totals over orders plus a per-day breakdown, newest day first"""
    total = SalesBreakdown()
    days: Dict[date, DailySales] = {}
    order_count = paid_order_count = cancelled_order_count = 0

    for order in orders:
        day = days.setdefault(order.display_day, DailySales(display_day=order.display_day))
        order_count += 1
        day.order_count += 1

        if order.status == OrderStatus.CANCELLED.value:
            cancelled_order_count += 1
            day.cancelled_order_count += 1

        if order.has_verified_payment:
            paid_order_count += 1
            day.paid_order_count += 1
            collected = collected_amounts(order)
            total.add(collected)
            day.collected.add(collected)

    return {
        "orderCount": order_count,
        "paidOrderCount": paid_order_count,
        "cancelledOrderCount": cancelled_order_count,
        "grossSales": total.gross,
        "discounts": total.discount,
        "netSales": total.net,
        "collectedBreakdown": total.to_dict(),
        "byDay": [days[key].to_dict() for key in sorted(days, reverse=True)],
    }


class SalesReportService:
    def __init__(self, session: Session, timezone: str):
        self.session = session
        self.timezone = timezone

    def period_range(self, period: str, now: Optional[datetime] = None) -> List[date]:
        """First and last display day covered by period"""
        days = PERIOD_DAYS.get(period)
        if days is None:
            raise InvalidPayload(f"Unknown report period: {period}")
        today = business_day(self.timezone, now)
        return [today - timedelta(days=days - 1), today]

    def load_orders(self, start: date, end: date) -> List[ReportOrder]:
        orders = self.session.exec(
            select(Order).where(Order.display_day >= start, Order.display_day <= end)
        ).all()
        if not orders:
            return []

        verified = self.session.exec(
            select(OrderPayment).where(
                OrderPayment.order_id.in_([order.id for order in orders]),
                OrderPayment.status == OrderPaymentStatus.VERIFIED.value,
            )
        ).all()
        paid_types: Dict[Any, set] = {}
        for payment in verified:
            paid_types.setdefault(payment.order_id, set()).add(payment.type)

        return [
            ReportOrder(
                display_day=order.display_day,
                status=order.status,
                subtotal=order.subtotal,
                vat_amount=order.vat_amount,
                delivery_fee=order.delivery_fee or 0,
                discount_total=order.discount_total,
                food_paid=OrderPaymentType.FOOD.value in paid_types.get(order.id, set()),
                delivery_paid=OrderPaymentType.DELIVERY.value in paid_types.get(order.id, set()),
            )
            for order in orders
        ]

    def sales_report(self, period: str = "today", now: Optional[datetime] = None) -> Dict[str, Any]:
        start, end = self.period_range(period, now)
        report = build_sales_analytics(self.load_orders(start, end))
        report["period"] = period
        report["from"] = start.isoformat()
        report["to"] = end.isoformat()
        logger.info(f"Built sales report for {period}: {report['orderCount']} orders")
        return report
