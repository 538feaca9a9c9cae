"""
PromptPay receiving account
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class PromptPayAccount(SQLModel, table=True):
    """Phone-number PromptPay account that customers transfer to; one is active at a time"""

    __tablename__ = "promptpay_accounts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=120, nullable=False)
    phone_number: str = Field(max_length=10, nullable=False, description="Normalized 10 digit Thai mobile number")
    is_active: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
