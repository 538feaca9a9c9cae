"""
Choice pool models

A choice pool is a reusable group of options (spice level, side dish, ...).
Pools are attached to menu items through SetMenuPoolLink rows, which carry
their own ordering and pricing rules.
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class ChoicePool(SQLModel, table=True):
    """Reusable named group of selectable options"""

    __tablename__ = "choice_pools"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=120, nullable=False, description="Internal name shown to admins")
    name_en: Optional[str] = Field(default=None, max_length=120)
    name_mm: Optional[str] = Field(default=None, max_length=120)
    is_active: bool = Field(default=True, index=True)
    display_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class ChoicePoolOption(SQLModel, table=True):
    """Option inside a choice pool"""

    __tablename__ = "choice_pool_options"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    pool_id: uuid.UUID = Field(foreign_key="choice_pools.id", index=True)
    menu_code: Optional[str] = Field(default=None, max_length=32)
    name_en: str = Field(max_length=120, nullable=False)
    name_mm: Optional[str] = Field(default=None, max_length=120)
    price: int = Field(default=0, ge=0, description="Price added to the item when selected")
    is_available: bool = Field(default=True)
    display_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class SetMenuPoolLink(SQLModel, table=True):
    """Attachment of a choice pool to a menu item"""

    __tablename__ = "set_menu_pool_links"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    menu_item_id: uuid.UUID = Field(foreign_key="menu_items.id", index=True)
    pool_id: uuid.UUID = Field(foreign_key="choice_pools.id", index=True)

    # Pricing rules
    is_price_determining: bool = Field(default=False, description="Selected option price replaces the item price")
    uses_option_price: bool = Field(default=True, description="Charge the option price rather than flat_price")
    flat_price: Optional[int] = Field(default=None, ge=0)

    # Selection rules
    is_required: bool = Field(default=True)
    min_select: int = Field(default=1, ge=0)
    max_select: int = Field(default=99, ge=1)

    label_en: Optional[str] = Field(default=None, max_length=120)
    label_mm: Optional[str] = Field(default=None, max_length=120)
    display_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
