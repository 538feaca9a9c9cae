"""
Test configuration for pytest
"""

import os
from contextlib import nullcontext

# Test environment variables, set before the application settings are cached
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["BREVO_API_KEY"] = ""
os.environ["BREVO_SENDER_EMAIL"] = ""

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import campus_order.models  # noqa: F401
from campus_order.core.auth import hash_password
from campus_order.core.database import get_session, get_session_factory
from campus_order.main import app
from campus_order.models.admin import Admin
from campus_order.models.choice_pool import ChoicePool, ChoicePoolOption, SetMenuPoolLink
from campus_order.models.menu_category import MenuCategory
from campus_order.models.menu_item import MenuItem, MenuItemStatus
from campus_order.models.user import User

# In-memory SQLite shared by every connection of a test
test_engine = create_engine(
    "sqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

BASE_TIME = datetime(2026, 1, 5, 9, 0, 0)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests share the test's database session"""
    app.dependency_overrides[get_session] = lambda: db
    app.dependency_overrides[get_session_factory] = lambda: (lambda: nullcontext(db))

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: Session):
    """Factory for customer accounts"""
    def _make_user(
        email: str = "student@example.com",
        name: str = "Student",
        password: str = None,
        phone_number: str = "0812345678",
    ) -> User:
        user = User(
            email=email,
            name=name,
            phone_number=phone_number,
            password_hash=hash_password(password) if password else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_admin(db: Session, make_user):
    """Factory for admin accounts; returns the admin row"""
    counter = {"value": 0}

    def _make_admin(role: str = "admin", email: str = None, is_active: bool = True) -> Admin:
        counter["value"] += 1
        user = make_user(email=email or f"{role}{counter['value']}@example.com", name=f"{role} {counter['value']}")
        admin = Admin(
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=role,
            is_active=is_active,
            created_at=BASE_TIME + timedelta(minutes=counter["value"]),
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin
    return _make_admin


@pytest.fixture
def auth_headers(client: TestClient):
    """Bearer headers for a user or admin"""
    def _auth_headers(account) -> dict:
        resolver = client.app.state.session_resolver
        user_id = account.user_id if isinstance(account, Admin) else account.id
        token = resolver.issue(user_id, account.email, account.name)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
def customer(make_user) -> User:
    return make_user()


@pytest.fixture
def menu(db: Session) -> SimpleNamespace:
    """A small menu with one plain item, one set menu and hidden rows.

    Rice (active)
        Fried Rice 60, published
        Build Your Bowl, set menu: Size pool sets the base price, Toppings are add-ons
        Secret Special, draft
    Noodles (active)
        Pad Thai 70, published, out of stock
    Hidden (inactive)
        Ghost Dish 10, published
    """
    rice = MenuCategory(name_en="Rice", display_order=0, created_at=BASE_TIME)
    noodles = MenuCategory(name_en="Noodles", display_order=1, created_at=BASE_TIME)
    hidden = MenuCategory(name_en="Hidden", display_order=2, is_active=False, created_at=BASE_TIME)
    db.add_all([rice, noodles, hidden])
    db.flush()

    published = MenuItemStatus.PUBLISHED.value
    fried_rice = MenuItem(
        category_id=rice.id, name_en="Fried Rice", price=60, status=published,
        allow_user_notes=True, display_order=0, created_at=BASE_TIME,
    )
    bowl = MenuItem(
        category_id=rice.id, name_en="Build Your Bowl", price=0, status=published,
        is_set_menu=True, display_order=1, created_at=BASE_TIME,
    )
    secret = MenuItem(category_id=rice.id, name_en="Secret Special", price=99, display_order=2, created_at=BASE_TIME)
    pad_thai = MenuItem(
        category_id=noodles.id, name_en="Pad Thai", price=70, status=published,
        is_available=False, display_order=0, created_at=BASE_TIME,
    )
    ghost = MenuItem(category_id=hidden.id, name_en="Ghost Dish", price=10, status=published, created_at=BASE_TIME)
    db.add_all([fried_rice, bowl, secret, pad_thai, ghost])
    db.flush()

    size_pool = ChoicePool(name="Size", name_en="Size", display_order=0, created_at=BASE_TIME)
    toppings_pool = ChoicePool(name="Toppings", name_en="Toppings", display_order=1, created_at=BASE_TIME)
    db.add_all([size_pool, toppings_pool])
    db.flush()

    small = ChoicePoolOption(pool_id=size_pool.id, name_en="Small", price=50, display_order=0, created_at=BASE_TIME)
    large = ChoicePoolOption(pool_id=size_pool.id, name_en="Large", price=70, display_order=1, created_at=BASE_TIME)
    egg = ChoicePoolOption(pool_id=toppings_pool.id, name_en="Egg", price=10, display_order=0, created_at=BASE_TIME)
    cheese = ChoicePoolOption(pool_id=toppings_pool.id, name_en="Cheese", price=15, display_order=1, created_at=BASE_TIME)
    truffle = ChoicePoolOption(
        pool_id=toppings_pool.id, name_en="Truffle", price=200, is_available=False,
        display_order=2, created_at=BASE_TIME,
    )
    db.add_all([small, large, egg, cheese, truffle])
    db.flush()

    size_link = SetMenuPoolLink(
        menu_item_id=bowl.id, pool_id=size_pool.id, is_price_determining=True,
        min_select=1, max_select=1, display_order=0, created_at=BASE_TIME,
    )
    toppings_link = SetMenuPoolLink(
        menu_item_id=bowl.id, pool_id=toppings_pool.id, is_required=False,
        min_select=1, max_select=2, display_order=1, created_at=BASE_TIME,
    )
    db.add_all([size_link, toppings_link])
    db.commit()

    return SimpleNamespace(
        rice=rice, noodles=noodles, hidden=hidden,
        fried_rice=fried_rice, bowl=bowl, secret=secret, pad_thai=pad_thai, ghost=ghost,
        size_pool=size_pool, toppings_pool=toppings_pool,
        small=small, large=large, egg=egg, cheese=cheese, truffle=truffle,
        size_link=size_link, toppings_link=toppings_link,
    )


CUSTOM_DELIVERY = {"mode": "custom", "customCondoName": "Lake View", "customBuildingName": "B"}


@pytest.fixture
def customer_headers(customer, auth_headers):
    return auth_headers(customer)


@pytest.fixture
def admin_headers(make_admin, auth_headers):
    return auth_headers(make_admin("moderator"))


@pytest.fixture
def place_order(client: TestClient, menu, customer_headers):
    """Put fried rice in the cart and check out with a custom drop-off"""
    def _place_order(quantity: int = 2, **checkout):
        client.post(
            "/api/cart",
            json={"menuItemId": str(menu.fried_rice.id), "quantity": quantity},
            headers=customer_headers,
        )
        payload = {"deliverySelection": CUSTOM_DELIVERY, **checkout}
        response = client.post("/api/orders", json=payload, headers=customer_headers)
        assert response.status_code == 201, response.json()
        return response.json()["order"]

    return _place_order
