"""
Pydantic schemas for menu administration
"""

from pydantic import Field, StrictBool, model_validator
from typing import List, Literal, Optional
import uuid

from campus_order.schemas.common import CamelModel, OptionalText, RequiredText


class CategoryCreate(CamelModel):
    name_en: RequiredText = Field(..., max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name_en: Optional[RequiredText] = Field(default=None, max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)
    display_order: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class MenuItemCreate(CamelModel):
    category_id: uuid.UUID
    name_en: RequiredText = Field(..., max_length=160)
    name_mm: OptionalText = Field(default=None, max_length=160)
    description_en: OptionalText = Field(default=None, max_length=2000)
    description_mm: OptionalText = Field(default=None, max_length=2000)
    image_url: OptionalText = Field(default=None, max_length=1000)
    menu_code: OptionalText = Field(default=None, max_length=32)
    price: int = Field(..., ge=0)
    status: Literal["draft", "published"] = "draft"
    is_available: bool = True
    is_set_menu: bool = False
    allow_user_notes: bool = False
    display_order: int = Field(default=0, ge=0)


class MenuItemUpdate(CamelModel):
    category_id: Optional[uuid.UUID] = None
    name_en: Optional[RequiredText] = Field(default=None, max_length=160)
    name_mm: OptionalText = Field(default=None, max_length=160)
    description_en: OptionalText = Field(default=None, max_length=2000)
    description_mm: OptionalText = Field(default=None, max_length=2000)
    image_url: OptionalText = Field(default=None, max_length=1000)
    menu_code: OptionalText = Field(default=None, max_length=32)
    price: Optional[int] = Field(default=None, ge=0)
    status: Optional[Literal["draft", "published"]] = None
    is_available: Optional[bool] = None
    is_set_menu: Optional[bool] = None
    allow_user_notes: Optional[bool] = None
    display_order: Optional[int] = Field(default=None, ge=0)


class AvailabilityUpdate(CamelModel):
    """Stock toggle; only a JSON boolean is accepted"""
    is_available: StrictBool


class ReorderRequest(CamelModel):
    """Complete ordered list of sibling ids"""
    ordered_ids: List[uuid.UUID]


class MenuReorderRequest(ReorderRequest):
    type: Literal["categories", "items"]
    category_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def check_category(self):
        if self.type == "items" and self.category_id is None:
            raise ValueError("categoryId is required when reordering items")
        return self


class PoolCreate(CamelModel):
    name: RequiredText = Field(..., max_length=120)
    name_en: OptionalText = Field(default=None, max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)
    is_active: bool = True
    display_order: int = Field(default=0, ge=0)


class PoolUpdate(CamelModel):
    name: Optional[RequiredText] = Field(default=None, max_length=120)
    name_en: OptionalText = Field(default=None, max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)
    is_active: Optional[bool] = None
    display_order: Optional[int] = Field(default=None, ge=0)


class PoolDuplicate(CamelModel):
    """Name overrides for the copy; omitted names get a ' (Copy)' suffix"""
    name: OptionalText = Field(default=None, max_length=120)
    name_en: OptionalText = Field(default=None, max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)


class OptionCreate(CamelModel):
    name_en: RequiredText = Field(..., max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)
    menu_code: OptionalText = Field(default=None, max_length=32)
    price: int = Field(default=0, ge=0)
    is_available: bool = True
    display_order: int = Field(default=0, ge=0)


class OptionUpdate(CamelModel):
    name_en: Optional[RequiredText] = Field(default=None, max_length=120)
    name_mm: OptionalText = Field(default=None, max_length=120)
    menu_code: OptionalText = Field(default=None, max_length=32)
    price: Optional[int] = Field(default=None, ge=0)
    is_available: Optional[bool] = None
    display_order: Optional[int] = Field(default=None, ge=0)


class PoolLinkInput(CamelModel):
    pool_id: uuid.UUID
    is_price_determining: bool = False
    uses_option_price: bool = True
    flat_price: Optional[int] = Field(default=None, ge=0)
    is_required: bool = True
    min_select: int = Field(default=1, ge=0)
    max_select: int = Field(default=99, ge=1)
    label_en: OptionalText = Field(default=None, max_length=120)
    label_mm: OptionalText = Field(default=None, max_length=120)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min_select > self.max_select:
            raise ValueError("minSelect must be less than or equal to maxSelect")
        if self.is_price_determining and self.max_select > 1:
            raise ValueError("A price-determining pool allows a single choice; set maxSelect to 1")
        return self


class PoolLinksSync(CamelModel):
    """Replacement set of pool links, in display order"""
    links: List[PoolLinkInput]

    @model_validator(mode="after")
    def check_single_base(self):
        if sum(1 for link in self.links if link.is_price_determining) > 1:
            raise ValueError("Only one pool link can be price-determining")
        return self


class RecommendedCreate(CamelModel):
    menu_item_id: uuid.UUID
    badge_label: OptionalText = Field(default=None, max_length=40)
