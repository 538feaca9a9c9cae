"""
Tests for the admin roster endpoints
"""

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from campus_order.models.admin import Admin
from campus_order.services.admins import SELF_REMOVAL_MESSAGE


def test_list_admins_in_creation_order(client: TestClient, make_admin, auth_headers):
    super_admin = make_admin("super_admin")
    moderator = make_admin("moderator")

    response = client.get("/api/admin/list", headers=auth_headers(moderator))

    assert response.status_code == 200
    assert [row["email"] for row in response.json()["admins"]] == [super_admin.email, moderator.email]


def test_add_admin_promotes_existing_user(client: TestClient, make_admin, make_user, auth_headers):
    make_user(email="newbie@example.com", name="Newbie")

    response = client.post(
        "/api/admin/add",
        json={"email": "Newbie@Example.com", "role": "admin"},
        headers=auth_headers(make_admin("super_admin")),
    )

    assert response.status_code == 201
    assert response.json()["admin"]["email"] == "newbie@example.com"
    assert response.json()["admin"]["role"] == "admin"


def test_add_admin_errors(client: TestClient, make_admin, auth_headers):
    super_admin = make_admin("super_admin")
    headers = auth_headers(super_admin)

    unknown = client.post("/api/admin/add", json={"email": "nobody@example.com"}, headers=headers)
    duplicate = client.post("/api/admin/add", json={"email": super_admin.email}, headers=headers)
    bad_role = client.post("/api/admin/add", json={"email": super_admin.email, "role": "owner"}, headers=headers)

    assert unknown.status_code == 404
    assert duplicate.status_code == 409
    assert bad_role.status_code == 400


def test_only_super_admins_add_admins(client: TestClient, make_admin, make_user, auth_headers):
    make_user(email="newbie@example.com", name="Newbie")

    response = client.post(
        "/api/admin/add", json={"email": "newbie@example.com"}, headers=auth_headers(make_admin("admin"))
    )

    assert response.status_code == 403


def test_super_admin_cannot_remove_self(client: TestClient, make_admin, auth_headers, db: Session):
    super_admin = make_admin("super_admin")

    response = client.request(
        "DELETE",
        "/api/admin/remove",
        json={"userId": str(super_admin.user_id)},
        headers=auth_headers(super_admin),
    )

    assert response.status_code == 400
    assert response.json() == {"error": SELF_REMOVAL_MESSAGE}
    assert db.exec(select(Admin).where(Admin.user_id == super_admin.user_id)).first() is not None


def test_super_admin_removes_other_admin(client: TestClient, make_admin, auth_headers, db: Session):
    super_admin = make_admin("super_admin")
    moderator = make_admin("moderator")
    moderator_user_id = moderator.user_id

    response = client.request(
        "DELETE",
        "/api/admin/remove",
        json={"userId": str(moderator_user_id)},
        headers=auth_headers(super_admin),
    )

    assert response.json() == {"success": True}
    assert db.exec(select(Admin).where(Admin.user_id == moderator_user_id)).first() is None


def test_regular_admin_cannot_remove(client: TestClient, make_admin, auth_headers):
    admin = make_admin("admin")
    moderator = make_admin("moderator")

    response = client.request(
        "DELETE",
        "/api/admin/remove",
        json={"userId": str(moderator.user_id)},
        headers=auth_headers(admin),
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Only super admins can remove admins"}


def test_remove_unknown_admin(client: TestClient, make_admin, make_user, auth_headers):
    plain = make_user(email="plain@example.com", name="Plain")

    response = client.request(
        "DELETE",
        "/api/admin/remove",
        json={"userId": str(plain.id)},
        headers=auth_headers(make_admin("super_admin")),
    )

    assert response.status_code == 404
