"""
Tests for back-office sales analytics
"""

from datetime import date, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session

from campus_order.core.config import get_settings
from campus_order.models.order import Order, OrderPayment
from campus_order.services.orders import business_day
from campus_order.services.reports import ReportOrder, build_sales_analytics

BASE = "/api/admin/reports/sales"
DAY = date(2026, 3, 2)


def test_analytics_counts_only_verified_money():
    orders = [
        ReportOrder(DAY, "order_in_kitchen", subtotal=1000, vat_amount=70, delivery_fee=30,
                    discount_total=50, food_paid=True),
        ReportOrder(DAY, "delivered", subtotal=200, vat_amount=14, delivery_fee=30,
                    discount_total=0, food_paid=True, delivery_paid=True),
        ReportOrder(DAY - timedelta(days=1), "cancelled", subtotal=500, vat_amount=35, delivery_fee=0,
                    discount_total=0),
    ]

    report = build_sales_analytics(orders)

    assert report["orderCount"] == 3
    assert report["paidOrderCount"] == 2
    assert report["cancelledOrderCount"] == 1
    assert report["grossSales"] == 1314
    assert report["discounts"] == 50
    assert report["netSales"] == 1264
    assert report["collectedBreakdown"] == {
        "food": 1200, "tax": 84, "delivery": 30, "discount": 50, "gross": 1314, "net": 1264,
    }
    assert report["byDay"] == [
        {"displayDay": "2026-03-02", "orderCount": 2, "paidOrderCount": 2, "cancelledOrderCount": 0,
         "grossSales": 1314, "netSales": 1264},
        {"displayDay": "2026-03-01", "orderCount": 1, "paidOrderCount": 0, "cancelledOrderCount": 1,
         "grossSales": 0, "netSales": 0},
    ]


def test_discount_never_exceeds_food_collected():
    report = build_sales_analytics([
        ReportOrder(DAY, "delivered", subtotal=10, vat_amount=0, delivery_fee=0, discount_total=50, food_paid=True),
    ])

    assert report["discounts"] == 10
    assert report["netSales"] == 0


def test_empty_report():
    report = build_sales_analytics([])

    assert report["orderCount"] == 0
    assert report["grossSales"] == 0
    assert report["byDay"] == []


def seed_order(db: Session, user, display_day: date, counter: int, food_verified: bool = False) -> Order:
    order = Order(
        display_id=f"OR{counter:04d}{display_day:%m%d}",
        display_day=display_day,
        display_counter=counter,
        user_id=user.id,
        customer_name=user.name,
        customer_phone="0812345678",
        subtotal=100,
        vat_amount=7,
        food_total=107,
        total_amount=107,
    )
    db.add(order)
    db.commit()
    db.add(OrderPayment(order_id=order.id, type="food", amount=107, status="verified" if food_verified else "pending"))
    db.commit()
    return order


def test_sales_endpoint_filters_by_period(client: TestClient, db: Session, customer, make_admin, auth_headers):
    today = business_day(get_settings().TIMEZONE)
    seed_order(db, customer, today, 1, food_verified=True)
    seed_order(db, customer, today, 2)
    seed_order(db, customer, today - timedelta(days=10), 1, food_verified=True)
    headers = auth_headers(make_admin("admin"))

    todays = client.get(BASE, headers=headers).json()["report"]
    month = client.get(BASE, params={"period": "last30"}, headers=headers).json()["report"]

    assert todays["period"] == "today"
    assert todays["from"] == todays["to"] == today.isoformat()
    assert todays["orderCount"] == 2
    assert todays["paidOrderCount"] == 1
    assert todays["grossSales"] == 107
    assert month["orderCount"] == 3
    assert month["grossSales"] == 214
    assert [day["displayDay"] for day in month["byDay"]] == [
        today.isoformat(), (today - timedelta(days=10)).isoformat(),
    ]


def test_sales_endpoint_errors(client: TestClient, make_admin, auth_headers):
    moderator = client.get(BASE, headers=auth_headers(make_admin("moderator")))
    unknown = client.get(BASE, params={"period": "forever"}, headers=auth_headers(make_admin("admin")))

    assert moderator.status_code == 403
    assert moderator.json() == {"error": "Permission required: reports:view"}
    assert unknown.status_code == 400
    assert unknown.json() == {"error": "Unknown report period: forever"}
