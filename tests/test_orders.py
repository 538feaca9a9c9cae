"""
Tests for checkout and the order lifecycle
"""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from campus_order.models.cart import Cart, CartItem, CartStatus
from campus_order.models.order import Order, OrderEvent, OrderItem, OrderPayment
from campus_order.scripts.cleanup_orders import cleanup_closed_orders
from campus_order.services.orders import business_day, format_display_id

CUSTOM_DELIVERY = {"mode": "custom", "customCondoName": "Lake View", "customBuildingName": "B"}


def admin_action(client: TestClient, headers, display_id: str, path: str, payload=None):
    response = client.post(f"/api/admin/orders/{display_id}/{path}", json=payload or {}, headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["order"]


def upload_receipt(client: TestClient, headers, display_id: str, payment_type: str):
    response = client.post(
        f"/api/orders/{display_id}/payments/{payment_type}/receipt",
        json={"receiptUrl": f"https://files.example.com/{display_id}-{payment_type}.jpg"},
        headers=headers,
    )
    assert response.status_code == 200, response.json()
    return response.json()["order"]


def accept(client: TestClient, headers, display_id: str):
    response = client.patch(
        f"/api/admin/orders/{display_id}/status", json={"action": "accept"}, headers=headers
    )
    assert response.status_code == 200, response.json()
    return response.json()["order"]


def test_display_id_format():
    assert format_display_id("OR", 1) == "OR0001"
    assert format_display_id("OR", 42) == "OR0042"


def test_business_day_uses_local_timezone():
    late_evening_utc = datetime(2026, 1, 5, 18, 30, tzinfo=ZoneInfo("UTC"))

    assert business_day("Asia/Bangkok", late_evening_utc).isoformat() == "2026-01-06"
    assert business_day("UTC", late_evening_utc).isoformat() == "2026-01-05"


def test_checkout_snapshots_cart(place_order, customer, db: Session):
    order = place_order(quantity=2, orderNote="Leave at lobby")

    assert order["displayId"] == "OR0001"
    assert order["status"] == "order_processing"
    assert order["customerPhone"] == "0812345678"
    assert order["orderNote"] == "Leave at lobby"
    assert order["delivery"]["locationName"] == "Lake View"
    assert order["totals"] == {
        "foodSubtotal": 120,
        "vatAmount": 8,
        "foodTotal": 128,
        "deliveryFee": 0,
        "discountTotal": 0,
        "totalAmount": 128,
    }
    assert order["deliveryFeeSet"] is False
    assert [item["name"] for item in order["items"]] == ["Fried Rice"]

    cart = db.exec(select(Cart).where(Cart.user_id == customer.id)).one()
    assert cart.status == CartStatus.SUBMITTED.value
    assert db.exec(select(CartItem)).all() == []


def test_display_ids_increment_within_a_day(place_order):
    first = place_order()
    second = place_order()

    assert first["displayId"] == "OR0001"
    assert second["displayId"] == "OR0002"


def test_checkout_requires_items(client: TestClient, customer_headers):
    response = client.post("/api/orders", json={"deliverySelection": CUSTOM_DELIVERY}, headers=customer_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Your cart is empty"}


def test_checkout_requires_phone(client: TestClient, make_user, menu, auth_headers):
    user = make_user(email="nophone@example.com", phone_number=None)
    headers = auth_headers(user)
    client.post("/api/cart", json={"menuItemId": str(menu.fried_rice.id), "quantity": 1}, headers=headers)

    response = client.post("/api/orders", json={"deliverySelection": CUSTOM_DELIVERY}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Phone number is required"}


def test_checkout_custom_delivery_needs_name(client: TestClient, customer_headers):
    response = client.post("/api/orders", json={"deliverySelection": {"mode": "custom"}}, headers=customer_headers)

    assert response.status_code == 400


def test_full_lifecycle_with_delivery_fee(client: TestClient, place_order, customer_headers, admin_headers, db: Session):
    display_id = place_order()["displayId"]

    order = accept(client, admin_headers, display_id)
    assert order["status"] == "awaiting_food_payment"
    assert order["payments"][0]["amount"] == 128

    order = upload_receipt(client, customer_headers, display_id, "food")
    assert order["status"] == "food_payment_review"

    order = admin_action(client, admin_headers, display_id, "verify-payment", {"type": "food"})
    assert order["status"] == "order_in_kitchen"

    order = admin_action(client, admin_headers, display_id, "handoff", {"deliveryFee": 30, "adminNote": "Rider Ko"})
    assert order["status"] == "awaiting_delivery_fee_payment"
    assert order["totals"]["deliveryFee"] == 30
    assert order["totals"]["totalAmount"] == 158
    assert order["adminNote"] == "Rider Ko"

    order = upload_receipt(client, customer_headers, display_id, "delivery")
    assert order["status"] == "delivery_payment_review"

    order = admin_action(client, admin_headers, display_id, "verify-payment", {"type": "delivery"})
    assert order["status"] == "delivered"
    assert order["isClosed"] is True
    assert order["closedAt"] is not None

    detail = client.get(f"/api/orders/{display_id}", headers=customer_headers).json()["order"]
    assert [event["toStatus"] for event in detail["events"]] == [
        "order_processing",
        "awaiting_food_payment",
        "food_payment_review",
        "order_in_kitchen",
        "awaiting_delivery_fee_payment",
        "delivery_payment_review",
        "delivered",
    ]


def test_zero_fee_goes_out_for_delivery(client: TestClient, place_order, customer_headers, admin_headers):
    display_id = place_order()["displayId"]
    accept(client, admin_headers, display_id)
    upload_receipt(client, customer_headers, display_id, "food")
    admin_action(client, admin_headers, display_id, "verify-payment", {"type": "food"})

    order = admin_action(client, admin_headers, display_id, "handoff", {"deliveryFee": 0})
    assert order["status"] == "order_out_for_delivery"
    assert order["deliveryFeeSet"] is True
    assert len(order["payments"]) == 1

    order = admin_action(client, admin_headers, display_id, "deliver")
    assert order["status"] == "delivered"
    assert order["isClosed"] is True


def test_rejected_receipt_can_be_resubmitted(client: TestClient, place_order, customer_headers, admin_headers):
    display_id = place_order()["displayId"]
    accept(client, admin_headers, display_id)
    upload_receipt(client, customer_headers, display_id, "food")

    order = admin_action(
        client, admin_headers, display_id, "reject-payment", {"type": "food", "reason": "Blurry photo"}
    )
    assert order["status"] == "awaiting_food_payment"
    payment = order["payments"][0]
    assert payment["status"] == "rejected"
    assert payment["rejectedReason"] == "Blurry photo"
    assert payment["rejectionCount"] == 1

    order = upload_receipt(client, customer_headers, display_id, "food")
    assert order["status"] == "food_payment_review"


def test_receipt_for_wrong_stage_is_rejected(client: TestClient, place_order, customer_headers):
    display_id = place_order()["displayId"]

    response = client.post(
        f"/api/orders/{display_id}/payments/food/receipt",
        json={"receiptUrl": "https://files.example.com/early.jpg"},
        headers=customer_headers,
    )

    assert response.status_code == 400


def test_handoff_requires_kitchen_status(client: TestClient, place_order, admin_headers):
    display_id = place_order()["displayId"]

    response = client.post(
        f"/api/admin/orders/{display_id}/handoff", json={"deliveryFee": 20}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Only orders in the kitchen can be handed off"}


def test_customer_cancel_only_before_acceptance(client: TestClient, place_order, customer_headers, admin_headers):
    first = place_order()["displayId"]
    response = client.post(f"/api/orders/{first}/cancel", json={"reason": "Changed my mind"}, headers=customer_headers)
    assert response.status_code == 200
    order = response.json()["order"]
    assert order["status"] == "cancelled"
    assert order["cancelReason"] == "Changed my mind"
    assert order["isClosed"] is True

    second = place_order()["displayId"]
    accept(client, admin_headers, second)
    response = client.post(f"/api/orders/{second}/cancel", json={}, headers=customer_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "This order can no longer be cancelled"}


def test_closed_order_rejects_transitions(client: TestClient, place_order, customer_headers, admin_headers):
    display_id = place_order()["displayId"]
    client.post(f"/api/orders/{display_id}/cancel", json={}, headers=customer_headers)

    response = client.patch(
        f"/api/admin/orders/{display_id}/status", json={"action": "accept"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Order is already closed"}


def test_admin_cancel_records_reason(client: TestClient, place_order, admin_headers):
    display_id = place_order()["displayId"]

    response = client.patch(
        f"/api/admin/orders/{display_id}/status",
        json={"action": "cancel", "reason": "Out of rice"},
        headers=admin_headers,
    )

    assert response.json()["order"]["status"] == "cancelled"
    assert response.json()["order"]["cancelReason"] == "Out of rice"


def test_other_users_cannot_see_order(client: TestClient, place_order, make_user, auth_headers):
    display_id = place_order()["displayId"]
    stranger = make_user(email="stranger@example.com", name="Stranger")

    response = client.get(f"/api/orders/{display_id}", headers=auth_headers(stranger))

    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


def test_customer_lists_own_orders(client: TestClient, place_order, customer_headers):
    place_order()
    place_order()

    orders = client.get("/api/orders", headers=customer_headers).json()["orders"]

    assert {order["displayId"] for order in orders} == {"OR0001", "OR0002"}


def test_admin_order_list_and_filters(client: TestClient, place_order, customer_headers, admin_headers):
    first = place_order()["displayId"]
    place_order()
    client.post(f"/api/orders/{first}/cancel", json={}, headers=customer_headers)

    everything = client.get("/api/admin/orders", headers=admin_headers).json()["orders"]
    open_only = client.get("/api/admin/orders?includeClosed=false", headers=admin_headers)
    cancelled = client.get("/api/admin/orders?status=cancelled", headers=admin_headers).json()["orders"]

    assert len(everything) == 2
    assert [order["displayId"] for order in open_only.json()["orders"]] == ["OR0002"]
    assert [order["displayId"] for order in cancelled] == [first]


def test_admin_order_detail_includes_events(client: TestClient, place_order, admin_headers):
    display_id = place_order()["displayId"]

    order = client.get(f"/api/admin/orders/{display_id.lower()}", headers=admin_headers).json()["order"]

    assert order["displayId"] == display_id
    assert order["events"][0]["eventType"] == "order_submitted"


def test_admin_routes_reject_customers(client: TestClient, place_order, customer_headers, make_admin, auth_headers):
    display_id = place_order()["displayId"]
    inactive = make_admin("super_admin", is_active=False)

    as_customer = client.get("/api/admin/orders", headers=customer_headers)
    as_inactive = client.post(
        f"/api/admin/orders/{display_id}/deliver", json={}, headers=auth_headers(inactive)
    )

    assert as_customer.status_code == 403
    assert as_inactive.status_code == 403


def test_checkout_blocked_while_shop_closed(client: TestClient, menu, customer_headers, make_admin, auth_headers):
    client.post(
        "/api/cart", json={"menuItemId": str(menu.fried_rice.id), "quantity": 1}, headers=customer_headers
    )
    client.post(
        "/api/admin/settings/shop",
        json={"isOpen": False, "closedMessageEn": "Closed today"},
        headers=auth_headers(make_admin("moderator")),
    )

    response = client.post("/api/orders", json={"deliverySelection": CUSTOM_DELIVERY}, headers=customer_headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Closed today"}


def test_cleanup_removes_old_closed_orders(client: TestClient, place_order, customer_headers, db: Session):
    old = place_order()["displayId"]
    recent = place_order()["displayId"]
    still_open = place_order()["displayId"]
    for display_id in (old, recent):
        client.post(f"/api/orders/{display_id}/cancel", json={}, headers=customer_headers)

    old_order = db.exec(select(Order).where(Order.display_id == old)).one()
    old_order.closed_at = datetime.utcnow() - timedelta(days=10)
    old_order_id = old_order.id
    db.add(old_order)
    db.commit()

    results = cleanup_closed_orders(db, retention_days=7, batch_size=1)

    assert results == {"deleted": 1, "batches": 1}
    remaining = {order.display_id for order in db.exec(select(Order)).all()}
    assert remaining == {recent, still_open}
    for model in (OrderItem, OrderEvent, OrderPayment):
        rows = db.exec(select(model).where(model.order_id == old_order_id)).all()
        assert rows == []
