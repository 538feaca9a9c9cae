"""
Cart API endpoints
"""

from fastapi import APIRouter, Depends
import uuid

from campus_order.core.dependencies import get_cart_service, require_user
from campus_order.models.user import User
from campus_order.schemas.cart import (
    AddSetMenuRequest, AddToCartRequest, BulkAddToCartRequest, UpdateQuantityRequest,
)
from campus_order.services.cart import CartService

router = APIRouter()


@router.get("")
def get_cart(user: User = Depends(require_user), cart_service: CartService = Depends(get_cart_service)):
    return {"summary": cart_service.get_summary(user.id)}


@router.post("")
def add_to_cart(
    payload: AddToCartRequest,
    user: User = Depends(require_user),
    cart_service: CartService = Depends(get_cart_service),
):
    summary = cart_service.add_item(
        user.id,
        payload.menu_item_id,
        payload.quantity,
        selections=payload.selections,
        note=payload.note,
    )
    return {"summary": summary, "message": "Item added to cart"}


@router.post("/bulk")
def bulk_add_to_cart(
    payload: BulkAddToCartRequest,
    user: User = Depends(require_user),
    cart_service: CartService = Depends(get_cart_service),
):
    """Add several plain items at once; any invalid item rejects the batch"""
    summary = cart_service.add_items(user.id, [(item.menu_item_id, item.quantity) for item in payload.items])
    return {"ok": True, "summary": summary}


@router.post("/set-menu")
def add_set_menu_to_cart(
    payload: AddSetMenuRequest,
    user: User = Depends(require_user),
    cart_service: CartService = Depends(get_cart_service),
):
    summary = cart_service.add_set_menu(
        user.id,
        payload.menu_item_id,
        payload.quantity,
        payload.selections,
        note=payload.note,
    )
    return {"summary": summary, "message": "Set menu added to cart"}


@router.patch("/items/{line_id}")
def update_cart_line(
    line_id: uuid.UUID,
    payload: UpdateQuantityRequest,
    user: User = Depends(require_user),
    cart_service: CartService = Depends(get_cart_service),
):
    return {"summary": cart_service.update_quantity(user.id, line_id, payload.quantity)}


@router.delete("/items/{line_id}")
def remove_cart_line(
    line_id: uuid.UUID,
    user: User = Depends(require_user),
    cart_service: CartService = Depends(get_cart_service),
):
    return {"summary": cart_service.remove_item(user.id, line_id)}
