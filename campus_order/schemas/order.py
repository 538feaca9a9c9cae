"""
Pydantic schemas for checkout and order administration
"""

from pydantic import Field, model_validator
from typing import Literal, Optional
import uuid

from campus_order.schemas.common import CamelModel, OptionalText


class DeliverySelection(CamelModel):
    """Preset delivery location, or free text for unlisted addresses"""
    mode: Literal["preset", "custom"]
    location_id: Optional[uuid.UUID] = None
    building_id: Optional[uuid.UUID] = None
    custom_condo_name: OptionalText = Field(default=None, max_length=120)
    custom_building_name: OptionalText = Field(default=None, max_length=60)

    @model_validator(mode="after")
    def check_mode(self):
        if self.mode == "preset" and self.location_id is None:
            raise ValueError("locationId is required for preset delivery")
        if self.mode == "custom" and not self.custom_condo_name:
            raise ValueError("customCondoName is required for custom delivery")
        return self


class CheckoutRequest(CamelModel):
    delivery_selection: DeliverySelection
    customer_phone: OptionalText = Field(default=None, max_length=32)
    order_note: OptionalText = Field(default=None, max_length=500)


class ReceiptUpload(CamelModel):
    """URL of a receipt already stored in object storage"""
    receipt_url: str = Field(..., min_length=1, max_length=1000)


class CancelOrderRequest(CamelModel):
    reason: OptionalText = Field(default=None, max_length=500)


class OrderStatusAction(CamelModel):
    action: Literal["accept", "cancel"]
    reason: OptionalText = Field(default=None, max_length=500)


class VerifyPaymentRequest(CamelModel):
    type: Literal["food", "delivery"]


class RejectPaymentRequest(CamelModel):
    type: Literal["food", "delivery"]
    reason: OptionalText = Field(default=None, max_length=500)


class HandoffRequest(CamelModel):
    """Delivery fee decided when the food leaves the kitchen; 0 means no fee"""
    delivery_fee: int = Field(..., ge=0)
    admin_note: OptionalText = Field(default=None, max_length=500)
