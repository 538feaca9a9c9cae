"""
Pydantic schemas for accounts and authentication
"""

from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime
import uuid

from campus_order.schemas.common import CamelModel, OptionalText, RequiredText


class SignUpRequest(CamelModel):
    """Account registration"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: RequiredText = Field(..., max_length=120)


class SignInRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class PhoneUpdateRequest(CamelModel):
    phone_number: OptionalText = Field(default=None, max_length=32, pattern=r"^\+?[0-9][0-9 -]{5,30}$")


class UserResponse(CamelModel):
    """User response model"""
    id: uuid.UUID
    email: str
    name: str
    phone_number: Optional[str] = None
    email_verified: bool
    default_delivery_location_id: Optional[uuid.UUID] = None
    default_delivery_building_id: Optional[uuid.UUID] = None
    created_at: datetime


class SessionResponse(CamelModel):
    """Token plus the signed-in user"""
    token: str
    token_type: str = "bearer"
    user: UserResponse
