"""
Schemas module
"""

from campus_order.schemas.auth import SessionResponse, SignInRequest, SignUpRequest, UserResponse
from campus_order.schemas.cart import AddToCartRequest, AddSetMenuRequest, BulkAddToCartRequest, Selection

__all__ = [
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "UserResponse",
    "AddToCartRequest",
    "AddSetMenuRequest",
    "BulkAddToCartRequest",
    "Selection",
]
