"""
Pydantic schemas for the cart
"""

from pydantic import Field
from typing import List
import uuid

from campus_order.core.config import get_settings
from campus_order.schemas.common import CamelModel, OptionalText

MAX_QUANTITY_PER_LINE = get_settings().MAX_QUANTITY_PER_LINE


class Selection(CamelModel):
    """One chosen option, addressed through the pool link it belongs to"""
    pool_link_id: uuid.UUID
    option_id: uuid.UUID


class AddToCartRequest(CamelModel):
    menu_item_id: uuid.UUID
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)
    selections: List[Selection] = Field(default_factory=list)
    note: OptionalText = Field(default=None, max_length=280)


class BulkCartItem(CamelModel):
    menu_item_id: uuid.UUID
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)


class BulkAddToCartRequest(CamelModel):
    items: List[BulkCartItem] = Field(..., min_length=1, max_length=50)


class AddSetMenuRequest(CamelModel):
    menu_item_id: uuid.UUID
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY_PER_LINE)
    selections: List[Selection] = Field(..., min_length=1)
    note: OptionalText = Field(default=None, max_length=280)


class UpdateQuantityRequest(CamelModel):
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)
