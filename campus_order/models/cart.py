"""
Cart models

Each user has at most one active cart. A cart line is identified by a hash
of its configuration so that adding the same configuration twice merges
quantities instead of creating a second line.
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Index, UniqueConstraint, text
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid


class CartStatus(str, Enum):
    """Lifecycle of a cart"""
    ACTIVE = "active"
    SUBMITTED = "submitted"


class Cart(SQLModel, table=True):
    """Shopping cart owned by one user"""

    __tablename__ = "carts"
    __table_args__ = (
        Index(
            "uq_carts_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    status: str = Field(default=CartStatus.ACTIVE.value, max_length=16)
    subtotal: int = Field(default=0, ge=0, description="Sum of line totals")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class CartItem(SQLModel, table=True):
    """Cart line with a priced snapshot of the configured menu item"""

    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "hash_key", name="uq_cart_items_cart_hash"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cart_id: uuid.UUID = Field(foreign_key="carts.id", index=True)
    menu_item_id: uuid.UUID = Field(foreign_key="menu_items.id", index=True)

    # Snapshot
    menu_code: Optional[str] = Field(default=None, max_length=32)
    menu_item_name: str = Field(max_length=160)
    menu_item_name_mm: Optional[str] = Field(default=None, max_length=160)

    # Pricing
    base_price: int = Field(default=0, ge=0)
    addons_total: int = Field(default=0, ge=0)
    quantity: int = Field(default=1, ge=1)
    total_price: int = Field(default=0, ge=0, description="(base_price + addons_total) * quantity")

    note: Optional[str] = Field(default=None, max_length=280)
    hash_key: str = Field(max_length=64)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def unit_price(self) -> int:
        return self.base_price + self.addons_total


class CartItemChoice(SQLModel, table=True):
    """Selected pool option on a cart line"""

    __tablename__ = "cart_item_choices"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cart_item_id: uuid.UUID = Field(foreign_key="cart_items.id", index=True)
    pool_link_id: uuid.UUID = Field(description="SetMenuPoolLink the option was chosen through")
    option_id: uuid.UUID

    group_name: str = Field(max_length=120)
    group_name_mm: Optional[str] = Field(default=None, max_length=120)
    option_name: str = Field(max_length=120)
    option_name_mm: Optional[str] = Field(default=None, max_length=120)
    menu_code: Optional[str] = Field(default=None, max_length=32)
    extra_price: int = Field(default=0, ge=0)
    selection_role: str = Field(default="addon", max_length=16, description="base or addon")
    display_order: int = Field(default=0)
