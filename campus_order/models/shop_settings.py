"""
Shop settings singleton
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid

SHOP_SETTINGS_ID = "default"


class ShopSettings(SQLModel, table=True):
    """Open/closed switch with bilingual closed messages, keyed by SHOP_SETTINGS_ID"""

    __tablename__ = "shop_settings"

    id: str = Field(default=SHOP_SETTINGS_ID, primary_key=True, max_length=32)
    is_open: bool = Field(default=True)
    closed_message_en: Optional[str] = Field(default=None, max_length=500)
    closed_message_mm: Optional[str] = Field(default=None, max_length=500)
    updated_by_admin_id: Optional[uuid.UUID] = Field(default=None, description="Admin who last changed the status")
    updated_at: datetime = Field(default_factory=datetime.utcnow)
