"""
Tests for delivery location management
"""

import uuid

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from campus_order.models.delivery_location import DeliveryBuilding
from campus_order.models.user import User

BASE = "/api/admin/delivery-locations"


def location_payload(**overrides):
    payload = {
        "condoName": "ABC Condo",
        "minFee": 20,
        "maxFee": 40,
        "buildings": ["Tower C", "tower a", "Tower B"],
    }
    payload.update(overrides)
    return payload


def test_create_location_generates_unique_slugs(client: TestClient, make_admin, auth_headers):
    headers = auth_headers(make_admin("admin"))

    first = client.post(BASE, json=location_payload(), headers=headers)
    second = client.post(BASE, json=location_payload(), headers=headers)

    assert first.status_code == 201
    assert first.json()["location"]["slug"] == "abc-condo"
    assert second.json()["location"]["slug"] == "abc-condo-1"


def test_buildings_are_sorted_by_label(client: TestClient, make_admin, auth_headers):
    response = client.post(BASE, json=location_payload(), headers=auth_headers(make_admin("admin")))

    labels = [building["label"] for building in response.json()["location"]["buildings"]]
    assert labels == ["tower a", "Tower B", "Tower C"]


def test_fee_bounds_are_validated(client: TestClient, make_admin, auth_headers):
    response = client.post(BASE, json=location_payload(minFee=50, maxFee=10), headers=auth_headers(make_admin("admin")))

    assert response.status_code == 400
    assert "Maximum fee must be greater than or equal to minimum fee" in response.json()["error"]


def test_update_checks_fees_against_stored_values(client: TestClient, make_admin, auth_headers):
    headers = auth_headers(make_admin("admin"))
    location_id = client.post(BASE, json=location_payload(), headers=headers).json()["location"]["id"]

    response = client.patch(f"{BASE}/{location_id}", json={"maxFee": 10}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Maximum fee must be greater than or equal to minimum fee"}


def test_update_replaces_buildings(client: TestClient, make_admin, auth_headers, db: Session):
    headers = auth_headers(make_admin("admin"))
    location_id = client.post(BASE, json=location_payload(), headers=headers).json()["location"]["id"]

    response = client.patch(
        f"{BASE}/{location_id}", json={"buildings": ["Main"], "notes": "Gate 2"}, headers=headers
    )

    location = response.json()["location"]
    assert [building["label"] for building in location["buildings"]] == ["Main"]
    assert location["notes"] == "Gate 2"
    assert len(db.exec(select(DeliveryBuilding)).all()) == 1


def test_public_list_only_shows_active(client: TestClient, make_admin, auth_headers):
    headers = auth_headers(make_admin("admin"))
    client.post(BASE, json=location_payload(condoName="Lake View"), headers=headers)
    client.post(BASE, json=location_payload(condoName="Old Dorm", isActive=False), headers=headers)

    public = client.get("/api/delivery-locations").json()["locations"]
    admin = client.get(BASE, headers=headers).json()["locations"]

    assert [location["condoName"] for location in public] == ["Lake View"]
    assert [location["condoName"] for location in admin] == ["Lake View", "Old Dorm"]


def test_delete_location(client: TestClient, make_admin, auth_headers, db: Session):
    headers = auth_headers(make_admin("admin"))
    location_id = client.post(BASE, json=location_payload(), headers=headers).json()["location"]["id"]

    response = client.delete(f"{BASE}/{location_id}", headers=headers)

    assert response.json() == {"success": True}
    assert db.exec(select(DeliveryBuilding)).all() == []
    assert client.delete(f"{BASE}/{location_id}", headers=headers).status_code == 404


def test_moderators_cannot_manage_locations(client: TestClient, make_admin, auth_headers):
    response = client.post(BASE, json=location_payload(), headers=auth_headers(make_admin("moderator")))

    assert response.status_code == 403
    assert response.json() == {"error": "Permission required: settings:delivery_locations"}


def test_checkout_with_preset_location(client: TestClient, customer, menu, make_admin, auth_headers):
    location = client.post(BASE, json=location_payload(), headers=auth_headers(make_admin("admin"))).json()["location"]
    building = location["buildings"][0]
    headers = auth_headers(customer)
    client.post("/api/cart", json={"menuItemId": str(menu.fried_rice.id), "quantity": 1}, headers=headers)

    response = client.post(
        "/api/orders",
        json={"deliverySelection": {"mode": "preset", "locationId": location["id"], "buildingId": building["id"]}},
        headers=headers,
    )

    delivery = response.json()["order"]["delivery"]
    assert delivery["mode"] == "preset"
    assert delivery["locationName"] == "ABC Condo"
    assert delivery["buildingLabel"] == "tower a"


# Customer delivery preference
PREFERENCE = "/api/user/delivery-location"


def test_save_delivery_preference(client: TestClient, customer, make_admin, auth_headers):
    location = client.post(BASE, json=location_payload(), headers=auth_headers(make_admin("admin"))).json()["location"]
    building_id = location["buildings"][0]["id"]
    headers = auth_headers(customer)

    response = client.put(PREFERENCE, json={"locationId": location["id"], "buildingId": building_id}, headers=headers)

    assert response.status_code == 200
    me = client.get("/api/user/me", headers=headers).json()
    assert me["defaultDeliveryLocationId"] == location["id"]
    assert me["defaultDeliveryBuildingId"] == building_id


def test_building_alone_implies_its_location(client: TestClient, customer, make_admin, auth_headers):
    location = client.post(BASE, json=location_payload(), headers=auth_headers(make_admin("admin"))).json()["location"]

    response = client.put(
        PREFERENCE, json={"buildingId": location["buildings"][1]["id"]}, headers=auth_headers(customer)
    )

    assert response.json()["defaultDeliveryLocationId"] == location["id"]


def test_building_must_belong_to_location(client: TestClient, customer, make_admin, auth_headers):
    admin_headers = auth_headers(make_admin("admin"))
    first = client.post(BASE, json=location_payload(), headers=admin_headers).json()["location"]
    second = client.post(BASE, json=location_payload(condoName="Lake View"), headers=admin_headers).json()["location"]

    response = client.put(
        PREFERENCE,
        json={"locationId": first["id"], "buildingId": second["buildings"][0]["id"]},
        headers=auth_headers(customer),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Building does not belong to the selected condo"}


def test_unknown_preference_targets(client: TestClient, customer, auth_headers):
    headers = auth_headers(customer)

    missing_location = client.put(PREFERENCE, json={"locationId": str(uuid.uuid4())}, headers=headers)
    missing_building = client.put(PREFERENCE, json={"buildingId": str(uuid.uuid4())}, headers=headers)

    assert missing_location.status_code == 404
    assert missing_location.json() == {"error": "Location not found"}
    assert missing_building.json() == {"error": "Building not found"}


def test_clearing_and_auth(client: TestClient, customer, make_admin, auth_headers):
    location = client.post(BASE, json=location_payload(), headers=auth_headers(make_admin("admin"))).json()["location"]
    headers = auth_headers(customer)
    client.put(PREFERENCE, json={"locationId": location["id"]}, headers=headers)

    cleared = client.put(PREFERENCE, json={}, headers=headers).json()

    assert cleared["defaultDeliveryLocationId"] is None
    assert cleared["defaultDeliveryBuildingId"] is None
    assert client.put(PREFERENCE, json={}).status_code == 401


def test_removed_location_clears_preferences(client: TestClient, customer, make_admin, auth_headers, db: Session):
    admin_headers = auth_headers(make_admin("admin"))
    location = client.post(BASE, json=location_payload(), headers=admin_headers).json()["location"]
    headers = auth_headers(customer)
    client.put(PREFERENCE, json={"buildingId": location["buildings"][0]["id"]}, headers=headers)

    client.patch(f"{BASE}/{location['id']}", json={"buildings": ["Main"]}, headers=admin_headers)
    db.refresh(customer)
    assert customer.default_delivery_location_id == uuid.UUID(location["id"])
    assert customer.default_delivery_building_id is None

    client.delete(f"{BASE}/{location['id']}", headers=admin_headers)
    user = db.get(User, customer.id)
    db.refresh(user)
    assert user.default_delivery_location_id is None
