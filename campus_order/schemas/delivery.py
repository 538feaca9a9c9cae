"""
Pydantic schemas for delivery locations
"""

from pydantic import Field, model_validator
from typing import List, Optional
import uuid

from campus_order.schemas.common import CamelModel, OptionalText, RequiredText

FEE_ORDER_MESSAGE = "Maximum fee must be greater than or equal to minimum fee"


class DeliveryLocationCreate(CamelModel):
    condo_name: RequiredText = Field(..., min_length=2, max_length=120)
    area: RequiredText = Field(default="AU", max_length=40)
    min_fee: int = Field(..., ge=0)
    max_fee: int = Field(..., ge=0)
    notes: OptionalText = Field(default=None, max_length=200)
    is_active: bool = True
    buildings: List[RequiredText] = Field(default_factory=list, max_length=20)

    @model_validator(mode="after")
    def check_fees(self):
        if self.max_fee < self.min_fee:
            raise ValueError(FEE_ORDER_MESSAGE)
        for label in self.buildings:
            if len(label) > 60:
                raise ValueError("Building labels must be at most 60 characters")
        return self


class DeliveryLocationUpdate(CamelModel):
    condo_name: Optional[RequiredText] = Field(default=None, min_length=2, max_length=120)
    area: Optional[RequiredText] = Field(default=None, max_length=40)
    min_fee: Optional[int] = Field(default=None, ge=0)
    max_fee: Optional[int] = Field(default=None, ge=0)
    notes: OptionalText = Field(default=None, max_length=200)
    is_active: Optional[bool] = None
    buildings: Optional[List[RequiredText]] = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def check_fees(self):
        if self.min_fee is not None and self.max_fee is not None and self.max_fee < self.min_fee:
            raise ValueError(FEE_ORDER_MESSAGE)
        for label in self.buildings or []:
            if len(label) > 60:
                raise ValueError("Building labels must be at most 60 characters")
        return self


class DeliveryPreferenceUpdate(CamelModel):
    """Customer's default delivery spot; both null clears it"""
    location_id: Optional[uuid.UUID] = None
    building_id: Optional[uuid.UUID] = None
