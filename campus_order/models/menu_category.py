"""
Menu category model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class MenuCategory(SQLModel, table=True):
    """Top level grouping of menu items"""

    __tablename__ = "menu_categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name_en: str = Field(max_length=120, nullable=False, description="English name")
    name_mm: Optional[str] = Field(default=None, max_length=120, description="Burmese name")
    display_order: int = Field(default=0, index=True, description="Sort position among categories")
    is_active: bool = Field(default=True, index=True, description="Hidden from the public menu when false")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
