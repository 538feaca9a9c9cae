"""
Tests for the shop open/closed gate and its admin endpoints
"""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from campus_order.core.cache import TaggedCache
from campus_order.core.errors import ShopClosed
from campus_order.models.shop_settings import SHOP_SETTINGS_ID, ShopSettings
from campus_order.services.shop import ShopStatusGate


def test_missing_settings_row_means_open(db: Session):
    gate = ShopStatusGate(db, TaggedCache())

    status = gate.get_status()

    assert status.is_open is True
    gate.ensure_open()


def test_closing_invalidates_cached_status(db: Session):
    """A cached 'open' must not survive an admin closing the shop"""
    cache = TaggedCache()
    gate = ShopStatusGate(db, cache, ttl_seconds=60)
    assert gate.get_status().is_open

    gate.set_status(False, None, closed_message_en="  Back at 5pm  ")

    status = gate.get_status()
    assert status.is_open is False
    assert status.closed_message_en == "Back at 5pm"
    with pytest.raises(ShopClosed, match="Back at 5pm"):
        gate.ensure_open()


def test_closed_without_message_uses_default(db: Session):
    gate = ShopStatusGate(db, TaggedCache())
    gate.set_status(False, None, closed_message_en="   ")

    with pytest.raises(ShopClosed, match="Shop is currently closed"):
        gate.ensure_open()


def test_set_status_upserts_single_row(db: Session):
    gate = ShopStatusGate(db, TaggedCache())
    gate.set_status(False, None)
    gate.set_status(True, None)

    row = db.get(ShopSettings, SHOP_SETTINGS_ID)
    assert row.is_open is True


def test_public_status_endpoint(client: TestClient):
    response = client.get("/api/shop/status")

    assert response.status_code == 200
    assert response.json()["isOpen"] is True


def test_moderator_can_toggle_shop(client: TestClient, make_admin, auth_headers):
    moderator = make_admin("moderator")

    response = client.post(
        "/api/admin/settings/shop",
        json={"isOpen": False, "closedMessageEn": "Closed for lunch"},
        headers=auth_headers(moderator),
    )

    assert response.status_code == 200
    assert response.json()["status"]["isOpen"] is False
    public = client.get("/api/shop/status").json()
    assert public == {**public, "isOpen": False, "closedMessageEn": "Closed for lunch"}


def test_shop_toggle_requires_strict_boolean(client: TestClient, make_admin, auth_headers):
    moderator = make_admin("moderator")

    response = client.post("/api/admin/settings/shop", json={"isOpen": "false"}, headers=auth_headers(moderator))

    assert response.status_code == 400


def test_shop_toggle_rejects_non_admins(client: TestClient, customer, auth_headers):
    anonymous = client.post("/api/admin/settings/shop", json={"isOpen": False})
    signed_in = client.post("/api/admin/settings/shop", json={"isOpen": False}, headers=auth_headers(customer))

    assert anonymous.status_code == 403
    assert signed_in.status_code == 403
