"""
Tests for the public and admin menu trees
"""

from datetime import datetime

from fastapi.testclient import TestClient
from sqlmodel import Session

from campus_order.core.cache import TaggedCache
from campus_order.models.menu_category import MenuCategory
from campus_order.models.recommended_item import RecommendedMenuItem
from campus_order.services.menu import MenuHierarchyAssembler


def names(nodes):
    return [node["nameEn"] for node in nodes]


def test_public_menu_hides_inactive_and_draft_rows(db: Session, menu):
    tree = MenuHierarchyAssembler(db).build_public_menu()

    assert names(tree) == ["Rice", "Noodles"]
    assert names(tree[0]["items"]) == ["Fried Rice", "Build Your Bowl"]
    # Out of stock items stay visible so the storefront can show them as sold out
    assert tree[1]["items"][0]["isAvailable"] is False


def test_public_menu_hides_unavailable_options(db: Session, menu):
    tree = MenuHierarchyAssembler(db).build_public_menu()
    bowl = tree[0]["items"][1]

    assert [link["poolName"] for link in bowl["poolLinks"]] == ["Size", "Toppings"]
    assert names(bowl["poolLinks"][1]["options"]) == ["Egg", "Cheese"]
    assert bowl["poolLinks"][0]["isPriceDetermining"] is True


def test_public_menu_skips_inactive_pools(db: Session, menu):
    menu.toppings_pool.is_active = False
    db.add(menu.toppings_pool)
    db.commit()

    bowl = MenuHierarchyAssembler(db).build_public_menu()[0]["items"][1]

    assert [link["poolName"] for link in bowl["poolLinks"]] == ["Size"]


def test_admin_menu_includes_everything(db: Session, menu):
    tree = MenuHierarchyAssembler(db).build_admin_menu()

    assert names(tree) == ["Rice", "Noodles", "Hidden"]
    assert "Secret Special" in names(tree[0]["items"])
    assert tree[0]["items"][2]["status"] == "draft"
    truffle = tree[0]["items"][1]["poolLinks"][1]["options"][2]
    assert truffle["nameEn"] == "Truffle"


def test_equal_display_order_breaks_ties_by_creation_time(db: Session):
    db.add(MenuCategory(name_en="Later", display_order=0, created_at=datetime(2026, 1, 5, 10, 0)))
    db.add(MenuCategory(name_en="Earlier", display_order=0, created_at=datetime(2026, 1, 5, 9, 0)))
    db.commit()

    assert names(MenuHierarchyAssembler(db).build_public_menu()) == ["Earlier", "Later"]


def test_recommended_drops_hidden_items(db: Session, menu):
    db.add(RecommendedMenuItem(menu_item_id=menu.fried_rice.id, menu_category_id=menu.rice.id, display_order=1))
    db.add(RecommendedMenuItem(menu_item_id=menu.secret.id, menu_category_id=menu.rice.id, display_order=0))
    db.commit()

    public = MenuHierarchyAssembler(db).build_recommended(public=True)
    admin = MenuHierarchyAssembler(db).build_recommended(public=False)

    assert [entry["item"]["nameEn"] for entry in public] == ["Fried Rice"]
    assert [entry["item"]["nameEn"] for entry in admin] == ["Secret Special", "Fried Rice"]


def test_public_menu_is_cached_until_invalidated(db: Session, menu):
    cache = TaggedCache()
    assembler = MenuHierarchyAssembler(db, cache)
    first = assembler.get_public_menu()

    menu.fried_rice.name_en = "Renamed Rice"
    db.add(menu.fried_rice)
    db.commit()
    assert assembler.get_public_menu() == first

    cache.invalidate_tag("public-menu")
    assert names(assembler.get_public_menu()["menu"][0]["items"])[0] == "Renamed Rice"


def test_menu_endpoint_sets_cache_headers(client: TestClient, menu):
    response = client.get("/api/menu")

    assert response.status_code == 200
    assert "max-age" in response.headers["cache-control"]
    body = response.json()
    assert names(body["menu"]) == ["Rice", "Noodles"]
    assert body["recommended"] == []


def test_menu_item_detail(client: TestClient, menu):
    found = client.get(f"/api/menu/items/{menu.bowl.id}")
    draft = client.get(f"/api/menu/items/{menu.secret.id}")

    assert found.status_code == 200
    assert "max-age" in found.headers["cache-control"]
    assert found.json()["detail"]["category"]["nameEn"] == "Rice"
    assert draft.status_code == 404
    assert draft.json() == {"error": "Menu item not found."}
