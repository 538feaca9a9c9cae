"""
Tests for cart aggregation and the cart endpoints
"""

import uuid

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError
from sqlmodel import Session, select

from campus_order.core.cache import TaggedCache
from campus_order.core.config import get_settings
from campus_order.core.errors import InvalidPayload, InvalidQuantity, NotFound, ShopClosed
from campus_order.models.cart import CartItem
from campus_order.schemas.cart import AddToCartRequest, UpdateQuantityRequest
from campus_order.services.cart import CartService, SelectionRef, build_line_hash
from campus_order.services.shop import ShopStatusGate


@pytest.fixture
def service(db: Session) -> CartService:
    return CartService(db, ShopStatusGate(db, TaggedCache()))


def bowl_selections(menu, *options):
    refs = []
    for option in options:
        link = menu.size_link if option.pool_id == menu.size_pool.id else menu.toppings_link
        refs.append(SelectionRef(pool_link_id=link.id, option_id=option.id))
    return refs


def test_line_hash_ignores_selection_order(menu):
    first = build_line_hash(menu.bowl.id, bowl_selections(menu, menu.small, menu.egg), None)
    second = build_line_hash(menu.bowl.id, bowl_selections(menu, menu.egg, menu.small), None)
    with_note = build_line_hash(menu.bowl.id, bowl_selections(menu, menu.small, menu.egg), "no onion")

    assert first == second
    assert first != with_note


def test_add_plain_item(service: CartService, customer, menu):
    summary = service.add_item(customer.id, menu.fried_rice.id, 2)

    assert summary["lineCount"] == 1
    assert summary["totalQuantity"] == 2
    assert summary["foodSubtotal"] == 120
    assert summary["lines"][0]["unitPrice"] == 60


def test_identical_configurations_merge(service: CartService, customer, menu):
    service.add_item(customer.id, menu.fried_rice.id, 2)
    summary = service.add_item(customer.id, menu.fried_rice.id, 3)

    assert summary["lineCount"] == 1
    assert summary["lines"][0]["quantity"] == 5
    assert summary["foodSubtotal"] == 300


def test_different_notes_stay_separate(service: CartService, customer, menu):
    service.add_item(customer.id, menu.fried_rice.id, 1)
    summary = service.add_item(customer.id, menu.fried_rice.id, 1, note="extra spicy")

    assert summary["lineCount"] == 2


def test_merge_beyond_line_limit_is_rejected(service: CartService, customer, menu):
    service.add_item(customer.id, menu.fried_rice.id, 15)

    with pytest.raises(InvalidQuantity, match="up to 20 of this configuration"):
        service.add_item(customer.id, menu.fried_rice.id, 6)

    summary = service.get_summary(customer.id)
    assert summary["lines"][0]["quantity"] == 15


@pytest.mark.parametrize("quantity", [0, 21, -1])
def test_quantity_bounds(service: CartService, customer, menu, quantity):
    with pytest.raises(InvalidQuantity):
        service.add_item(customer.id, menu.fried_rice.id, quantity)


def test_set_menu_pricing(service: CartService, customer, menu):
    summary = service.add_set_menu(
        customer.id, menu.bowl.id, 2, bowl_selections(menu, menu.small, menu.egg, menu.cheese)
    )

    line = summary["lines"][0]
    assert line["basePrice"] == 50
    assert line["addonsTotal"] == 25
    assert line["unitPrice"] == 75
    assert line["totalPrice"] == 150
    assert [choice["selectionRole"] for choice in line["choices"]] == ["base", "addon", "addon"]


def test_set_menu_requires_price_determining_choice(service: CartService, customer, menu):
    with pytest.raises(InvalidPayload, match="Please choose an option for Size"):
        service.add_set_menu(customer.id, menu.bowl.id, 1, bowl_selections(menu, menu.egg))


def test_set_menu_respects_max_select(service: CartService, customer, menu):
    menu.truffle.is_available = True
    service.session.add(menu.truffle)
    service.session.commit()

    with pytest.raises(InvalidPayload, match="at most 2"):
        service.add_set_menu(
            customer.id, menu.bowl.id, 1,
            bowl_selections(menu, menu.small, menu.egg, menu.cheese, menu.truffle),
        )


def test_unavailable_option_is_rejected(service: CartService, customer, menu):
    with pytest.raises(InvalidPayload, match="Truffle is currently unavailable"):
        service.add_set_menu(customer.id, menu.bowl.id, 1, bowl_selections(menu, menu.small, menu.truffle))


def test_option_from_other_pool_is_rejected(service: CartService, customer, menu):
    selections = [
        SelectionRef(pool_link_id=menu.size_link.id, option_id=menu.small.id),
        SelectionRef(pool_link_id=menu.toppings_link.id, option_id=menu.large.id),
    ]
    with pytest.raises(NotFound):
        service.add_set_menu(customer.id, menu.bowl.id, 1, selections)


def test_set_menu_endpoint_rejects_plain_item(service: CartService, customer, menu):
    with pytest.raises(InvalidPayload, match="not a set menu"):
        service.add_set_menu(customer.id, menu.fried_rice.id, 1, bowl_selections(menu, menu.small))


def test_unavailable_and_hidden_items(service: CartService, customer, menu):
    with pytest.raises(InvalidPayload, match="Pad Thai is currently unavailable"):
        service.add_item(customer.id, menu.pad_thai.id, 1)
    with pytest.raises(NotFound):
        service.add_item(customer.id, menu.secret.id, 1)
    with pytest.raises(NotFound):
        service.add_item(customer.id, menu.ghost.id, 1)


def test_note_requires_item_permission(service: CartService, customer, menu):
    with pytest.raises(InvalidPayload, match="Notes are not allowed"):
        service.add_set_menu(customer.id, menu.bowl.id, 1, bowl_selections(menu, menu.small), note="hi")


def test_closed_shop_blocks_adds(service: CartService, customer, menu, db: Session):
    service.shop_gate.set_status(False, None, closed_message_en="Closed for exams")

    with pytest.raises(ShopClosed, match="Closed for exams"):
        service.add_item(customer.id, menu.fried_rice.id, 1)

    assert db.exec(select(CartItem)).all() == []


def test_remove_allowed_while_closed(service: CartService, customer, menu):
    summary = service.add_item(customer.id, menu.fried_rice.id, 1)
    service.shop_gate.set_status(False, None)

    summary = service.remove_item(customer.id, uuid.UUID(summary["lines"][0]["id"]))

    assert summary["lineCount"] == 0
    assert summary["foodSubtotal"] == 0


def test_bulk_add_is_all_or_nothing(service: CartService, customer, menu, db: Session):
    with pytest.raises(InvalidPayload):
        service.add_items(customer.id, [(menu.fried_rice.id, 1), (menu.pad_thai.id, 1)])

    assert db.exec(select(CartItem)).all() == []


def test_bulk_add_rejects_unknown_item(service: CartService, customer, menu, db: Session):
    with pytest.raises(NotFound):
        service.add_items(customer.id, [(menu.fried_rice.id, 1), (uuid.uuid4(), 1)])

    assert db.exec(select(CartItem)).all() == []


def test_bulk_add_rolls_back_flushed_lines(service: CartService, customer, menu, db: Session):
    """The first entry is written before the merged second entry overflows"""
    with pytest.raises(InvalidQuantity):
        service.add_items(customer.id, [(menu.fried_rice.id, 15), (menu.fried_rice.id, 10)])

    assert db.exec(select(CartItem)).all() == []
    assert service.get_active_cart(customer.id) is None


def test_bulk_add_keeps_existing_lines_on_failure(service: CartService, customer, menu, db: Session):
    service.add_item(customer.id, menu.fried_rice.id, 2)

    with pytest.raises(InvalidQuantity):
        service.add_items(customer.id, [(menu.fried_rice.id, 3), (menu.fried_rice.id, 16)])

    lines = db.exec(select(CartItem)).all()
    assert [(line.menu_item_id, line.quantity) for line in lines] == [(menu.fried_rice.id, 2)]


def test_only_one_option_sets_the_base_price(service: CartService, customer, menu):
    menu.size_link.max_select = 2
    service.session.add(menu.size_link)
    service.session.commit()

    with pytest.raises(InvalidPayload, match="Only one option can set the base price"):
        service.add_set_menu(customer.id, menu.bowl.id, 1, bowl_selections(menu, menu.small, menu.large))


def test_cart_endpoints(client: TestClient, customer, menu, auth_headers):
    headers = auth_headers(customer)

    added = client.post(
        "/api/cart",
        json={"menuItemId": str(menu.fried_rice.id), "quantity": 2, "note": "no chili"},
        headers=headers,
    )
    assert added.status_code == 200
    assert added.json()["message"] == "Item added to cart"
    line_id = added.json()["summary"]["lines"][0]["id"]

    updated = client.patch(f"/api/cart/items/{line_id}", json={"quantity": 4}, headers=headers)
    assert updated.json()["summary"]["foodSubtotal"] == 240

    removed = client.delete(f"/api/cart/items/{line_id}", headers=headers)
    assert removed.json()["summary"]["lineCount"] == 0

    cart = client.get("/api/cart", headers=headers).json()["summary"]
    assert cart["lines"] == []


def test_set_menu_endpoint(client: TestClient, customer, menu, auth_headers):
    response = client.post(
        "/api/cart/set-menu",
        json={
            "menuItemId": str(menu.bowl.id),
            "quantity": 1,
            "selections": [
                {"poolLinkId": str(menu.size_link.id), "optionId": str(menu.large.id)},
                {"poolLinkId": str(menu.toppings_link.id), "optionId": str(menu.egg.id)},
            ],
        },
        headers=auth_headers(customer),
    )

    assert response.status_code == 200
    assert response.json()["summary"]["foodSubtotal"] == 80


def test_bulk_endpoint(client: TestClient, customer, menu, auth_headers):
    response = client.post(
        "/api/cart/bulk",
        json={"items": [{"menuItemId": str(menu.fried_rice.id), "quantity": 1}]},
        headers=auth_headers(customer),
    )

    assert response.json()["ok"] is True
    assert response.json()["summary"]["totalQuantity"] == 1


def test_quantity_over_limit_fails_validation(client: TestClient, customer, menu, auth_headers):
    response = client.post(
        "/api/cart",
        json={"menuItemId": str(menu.fried_rice.id), "quantity": 21},
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json()["issues"][0]["path"] == "quantity"


def test_closed_shop_returns_forbidden(client: TestClient, customer, menu, auth_headers, db: Session):
    ShopStatusGate(db, client.app.state.cache).set_status(False, None, closed_message_en="Back tomorrow")

    response = client.post(
        "/api/cart",
        json={"menuItemId": str(menu.fried_rice.id), "quantity": 1},
        headers=auth_headers(customer),
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Back tomorrow"}


def test_cart_requires_sign_in(client: TestClient):
    response = client.get("/api/cart")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_other_users_line_is_not_found(client: TestClient, customer, make_user, menu, auth_headers):
    added = client.post(
        "/api/cart",
        json={"menuItemId": str(menu.fried_rice.id), "quantity": 1},
        headers=auth_headers(customer),
    )
    line_id = added.json()["summary"]["lines"][0]["id"]
    other = make_user(email="other@example.com", name="Other")

    response = client.delete(f"/api/cart/items/{line_id}", headers=auth_headers(other))

    assert response.status_code == 404


def test_request_quantity_bound_follows_settings():
    limit = get_settings().MAX_QUANTITY_PER_LINE

    assert AddToCartRequest(menu_item_id=uuid.uuid4(), quantity=limit).quantity == limit
    with pytest.raises(ValidationError):
        UpdateQuantityRequest(quantity=limit + 1)


def test_service_bound_is_configurable(db: Session, customer, menu):
    service = CartService(db, ShopStatusGate(db, TaggedCache()), max_quantity_per_line=30)

    summary = service.add_item(customer.id, menu.fried_rice.id, 25)
    assert summary["totalQuantity"] == 25
