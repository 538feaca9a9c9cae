"""
Recommended menu item model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class RecommendedMenuItem(SQLModel, table=True):
    """Menu item featured at the top of the storefront"""

    __tablename__ = "recommended_menu_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    menu_item_id: uuid.UUID = Field(foreign_key="menu_items.id", unique=True, index=True)
    menu_category_id: uuid.UUID = Field(foreign_key="menu_categories.id", index=True)
    badge_label: Optional[str] = Field(default=None, max_length=40)
    display_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
