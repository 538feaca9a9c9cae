"""
Menu item model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid


class MenuItemStatus(str, Enum):
    """Publish status of a menu item"""
    DRAFT = "draft"
    PUBLISHED = "published"


class MenuItem(SQLModel, table=True):
    """Menu item for ordering"""

    __tablename__ = "menu_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    category_id: uuid.UUID = Field(
        foreign_key="menu_categories.id",
        index=True,
        description="Category this item belongs to"
    )
    menu_code: Optional[str] = Field(default=None, max_length=32, description="Short kitchen code")

    # Item details
    name_en: str = Field(max_length=160, nullable=False)
    name_mm: Optional[str] = Field(default=None, max_length=160)
    description_en: Optional[str] = Field(default=None, max_length=2000)
    description_mm: Optional[str] = Field(default=None, max_length=2000)
    image_url: Optional[str] = Field(default=None, max_length=1000)

    # Pricing (integer minor currency unit)
    price: int = Field(default=0, ge=0, description="Base price")

    # Publishing and availability
    status: str = Field(default=MenuItemStatus.DRAFT.value, max_length=16, index=True)
    is_available: bool = Field(default=True, index=True, description="Out of stock when false")
    is_set_menu: bool = Field(default=False, description="Priced from linked choice pools")
    allow_user_notes: bool = Field(default=False)

    # Display
    display_order: int = Field(default=0, description="Display order within category")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.status == MenuItemStatus.PUBLISHED.value
