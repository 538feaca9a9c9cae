"""
Admin roster model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid

from campus_order.core.permissions import AdminRole


class Admin(SQLModel, table=True):
    """Back office admin linked to a user account"""

    __tablename__ = "admins"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", unique=True, index=True)
    email: str = Field(max_length=255, nullable=False)
    name: Optional[str] = Field(default=None, max_length=120)
    role: str = Field(default=AdminRole.MODERATOR.value, max_length=20, description="moderator, admin or super_admin")
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
