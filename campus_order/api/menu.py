"""
Public storefront endpoints
"""

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session
import uuid

from campus_order.core.config import Settings, get_settings
from campus_order.core.database import get_session
from campus_order.core.dependencies import get_menu_assembler, get_shop_gate
from campus_order.services.delivery import DeliveryLocationService, serialize_location
from campus_order.services.menu import MenuHierarchyAssembler
from campus_order.services.shop import ShopStatusGate

router = APIRouter()


@router.get("/menu")
def get_menu(
    response: Response,
    assembler: MenuHierarchyAssembler = Depends(get_menu_assembler),
    settings: Settings = Depends(get_settings),
):
    """Public menu tree plus recommended items"""
    response.headers["Cache-Control"] = settings.MENU_CACHE_CONTROL
    return assembler.get_public_menu()


@router.get("/menu/items/{item_id}")
def get_menu_item(
    item_id: uuid.UUID,
    response: Response,
    assembler: MenuHierarchyAssembler = Depends(get_menu_assembler),
    settings: Settings = Depends(get_settings),
):
    response.headers["Cache-Control"] = settings.MENU_CACHE_CONTROL
    return {"detail": assembler.get_public_item(item_id)}


@router.get("/shop/status")
def get_shop_status(shop_gate: ShopStatusGate = Depends(get_shop_gate)):
    return shop_gate.get_status().to_dict()


@router.get("/delivery-locations")
def list_delivery_locations(session: Session = Depends(get_session)):
    """Active delivery locations for the checkout picker"""
    locations = DeliveryLocationService(session).list_locations(active_only=True)
    return {"locations": [serialize_location(location) for location in locations]}
