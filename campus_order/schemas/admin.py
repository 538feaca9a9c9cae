"""
Pydantic schemas for the admin roster and shop settings
"""

from pydantic import EmailStr, Field, StrictBool
from typing import Literal
import uuid

from campus_order.schemas.common import CamelModel, OptionalText, RequiredText


class AddAdminRequest(CamelModel):
    email: EmailStr
    role: Literal["moderator", "admin", "super_admin"] = "moderator"


class RemoveAdminRequest(CamelModel):
    user_id: uuid.UUID


class ShopStatusUpdate(CamelModel):
    is_open: StrictBool
    closed_message_en: OptionalText = Field(default=None, max_length=500)
    closed_message_mm: OptionalText = Field(default=None, max_length=500)


class PromptPayAccountCreate(CamelModel):
    name: RequiredText = Field(..., max_length=120)
    phone_number: str = Field(..., min_length=8, max_length=32)
    activate: bool = False
