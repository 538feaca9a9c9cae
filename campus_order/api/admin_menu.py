"""
Admin menu API endpoints: categories, items, stock toggle and recommendations
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import Optional
import uuid
import structlog

from campus_order.core.cache import TaggedCache
from campus_order.core.database import get_session
from campus_order.core.dependencies import get_cache, require_active_admin, require_permission
from campus_order.core.errors import AppError, Internal
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.schemas.menu import (
    AvailabilityUpdate, CategoryCreate, CategoryUpdate, MenuItemCreate, MenuItemUpdate,
    MenuReorderRequest, PoolLinksSync, RecommendedCreate, ReorderRequest,
)
from campus_order.services.menu import serialize_category, serialize_item
from campus_order.services.menu_admin import MenuAdminService, serialize_availability
from campus_order.services.pools import ChoicePoolService, serialize_link

logger = structlog.get_logger(__name__)
router = APIRouter()


def get_menu_admin(
    session: Session = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> MenuAdminService:
    return MenuAdminService(session, cache)


@router.get("/tree")
def get_admin_tree(
    admin: Admin = Depends(require_active_admin),
    service: MenuAdminService = Depends(get_menu_admin),
):
    """Full menu including inactive and draft rows"""
    return {"menu": service.get_tree()}


# Categories

@router.get("/categories")
def list_categories(
    admin: Admin = Depends(require_active_admin),
    service: MenuAdminService = Depends(get_menu_admin),
):
    return {"categories": [serialize_category(category, admin=True) for category in service.list_categories()]}


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    admin: Admin = Depends(require_permission(Permission.MENU_CREATE)),
    service: MenuAdminService = Depends(get_menu_admin),
    session: Session = Depends(get_session),
):
    try:
        category = service.create_category(payload)
        return {"category": serialize_category(category, admin=True)}
    except AppError:
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating menu category: {e}")
        raise Internal("Failed to create category")


@router.patch("/categories/{category_id}")
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    category = service.update_category(category_id, payload)
    return {"category": serialize_category(category, admin=True)}


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: uuid.UUID,
    admin: Admin = Depends(require_permission(Permission.MENU_DELETE)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    service.delete_category(category_id)
    return {"success": True}


@router.post("/reorder")
def reorder_menu(
    payload: MenuReorderRequest,
    admin: Admin = Depends(require_permission(Permission.MENU_REORDER)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    """Reorder categories, or items within one category"""
    if payload.type == "categories":
        service.reorder_categories(payload.ordered_ids)
    else:
        service.reorder_items(payload.category_id, payload.ordered_ids)
    return {"success": True}


# Items

@router.get("/items")
def list_items(
    category_id: Optional[uuid.UUID] = None,
    admin: Admin = Depends(require_active_admin),
    service: MenuAdminService = Depends(get_menu_admin),
):
    return {"items": [serialize_item(item, admin=True) for item in service.list_items(category_id)]}


@router.post("/items", status_code=status.HTTP_201_CREATED)
def create_item(
    payload: MenuItemCreate,
    admin: Admin = Depends(require_permission(Permission.MENU_CREATE)),
    service: MenuAdminService = Depends(get_menu_admin),
    session: Session = Depends(get_session),
):
    try:
        item = service.create_item(payload)
        return {"item": serialize_item(item, admin=True)}
    except AppError:
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating menu item: {e}")
        raise Internal("Failed to create menu item")


@router.get("/items/{item_id}")
def get_item(
    item_id: uuid.UUID,
    admin: Admin = Depends(require_active_admin),
    service: MenuAdminService = Depends(get_menu_admin),
    session: Session = Depends(get_session),
):
    item = service.get_item(item_id)
    links = ChoicePoolService(session, service.cache).get_pool_links(item.id)
    data = serialize_item(item, admin=True)
    data["poolLinks"] = [serialize_link(link) for link in links]
    return {"item": data}


@router.patch("/items/{item_id}")
def update_item(
    item_id: uuid.UUID,
    payload: MenuItemUpdate,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    item = service.update_item(item_id, payload)
    return {"item": serialize_item(item, admin=True)}


@router.delete("/items/{item_id}")
def delete_item(
    item_id: uuid.UUID,
    admin: Admin = Depends(require_permission(Permission.MENU_DELETE)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    service.delete_item(item_id)
    return {"success": True}


@router.patch("/items/{item_id}/availability")
def set_item_availability(
    item_id: uuid.UUID,
    payload: AvailabilityUpdate,
    admin: Admin = Depends(require_permission(Permission.ITEM_TOGGLE_STOCK)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    """Mark an item in or out of stock"""
    item = service.set_item_availability(item_id, payload.is_available)
    return {"item": serialize_availability(item)}


@router.put("/items/{item_id}/pool-links")
def sync_item_pool_links(
    item_id: uuid.UUID,
    payload: PoolLinksSync,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    session: Session = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
):
    """Replace the pools linked to an item"""
    links = ChoicePoolService(session, cache).sync_pool_links(item_id, payload.links)
    return {"poolLinks": [serialize_link(link) for link in links]}


# Recommendations

@router.get("/recommended")
def list_recommended(
    admin: Admin = Depends(require_active_admin),
    service: MenuAdminService = Depends(get_menu_admin),
):
    return {"recommended": service.list_recommended()}


@router.post("/recommended", status_code=status.HTTP_201_CREATED)
def add_recommended(
    payload: RecommendedCreate,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    entry = service.add_recommended(payload)
    return {"id": str(entry.id), "menuItemId": str(entry.menu_item_id), "displayOrder": entry.display_order}


@router.post("/recommended/reorder")
def reorder_recommended(
    payload: ReorderRequest,
    admin: Admin = Depends(require_permission(Permission.MENU_REORDER)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    service.reorder_recommended(payload.ordered_ids)
    return {"success": True}


@router.delete("/recommended/{entry_id}")
def remove_recommended(
    entry_id: uuid.UUID,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    service: MenuAdminService = Depends(get_menu_admin),
):
    service.remove_recommended(entry_id)
    return {"success": True}
