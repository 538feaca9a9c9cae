from campus_order.models.user import User, PasswordResetToken
from campus_order.models.admin import Admin
from campus_order.models.menu_category import MenuCategory
from campus_order.models.menu_item import MenuItem, MenuItemStatus
from campus_order.models.choice_pool import ChoicePool, ChoicePoolOption, SetMenuPoolLink
from campus_order.models.recommended_item import RecommendedMenuItem
from campus_order.models.cart import Cart, CartItem, CartItemChoice, CartStatus
from campus_order.models.order import (
    Order, OrderItem, OrderEvent, OrderPayment, OrderStatus, OrderPaymentType,
    OrderPaymentStatus, OrderActorType, DeliveryMode, CLOSED_STATUSES,
)
from campus_order.models.delivery_location import DeliveryLocation, DeliveryBuilding
from campus_order.models.shop_settings import ShopSettings, SHOP_SETTINGS_ID
from campus_order.models.promptpay_account import PromptPayAccount

__all__ = [
    "User",
    "PasswordResetToken",
    "Admin",
    "MenuCategory",
    "MenuItem",
    "MenuItemStatus",
    "ChoicePool",
    "ChoicePoolOption",
    "SetMenuPoolLink",
    "RecommendedMenuItem",
    "Cart",
    "CartItem",
    "CartItemChoice",
    "CartStatus",
    "Order",
    "OrderItem",
    "OrderEvent",
    "OrderPayment",
    "OrderStatus",
    "OrderPaymentType",
    "OrderPaymentStatus",
    "OrderActorType",
    "DeliveryMode",
    "CLOSED_STATUSES",
    "DeliveryLocation",
    "DeliveryBuilding",
    "ShopSettings",
    "SHOP_SETTINGS_ID",
    "PromptPayAccount",
]
