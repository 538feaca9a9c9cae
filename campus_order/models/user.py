"""
Customer account models
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class User(SQLModel, table=True):
    """Customer account; admins are users with an Admin row"""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Authentication
    email: str = Field(index=True, unique=True, nullable=False, max_length=255)
    password_hash: Optional[str] = Field(default=None, nullable=True, description="Null for accounts without a password credential")

    # Profile
    name: str = Field(nullable=False, max_length=120)
    phone_number: Optional[str] = Field(default=None, max_length=32, nullable=True)
    email_verified: bool = Field(default=False)

    # Delivery preference
    default_delivery_location_id: Optional[uuid.UUID] = Field(default=None, nullable=True)
    default_delivery_building_id: Optional[uuid.UUID] = Field(default=None, nullable=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class PasswordResetToken(SQLModel, table=True):
    """One-time password reset token, stored as a sha256 digest"""

    __tablename__ = "password_reset_tokens"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(unique=True, index=True, max_length=64)
    expires_at: datetime = Field(nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at
