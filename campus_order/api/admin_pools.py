"""
Admin choice pool API endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
import uuid

from campus_order.core.cache import TaggedCache
from campus_order.core.database import get_session
from campus_order.core.dependencies import get_cache, require_active_admin, require_permission
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.schemas.menu import (
    OptionCreate, OptionUpdate, PoolCreate, PoolDuplicate, PoolUpdate, ReorderRequest,
)
from campus_order.services.menu import serialize_option, serialize_pool
from campus_order.services.pools import ChoicePoolService

router = APIRouter()


def get_pool_service(
    session: Session = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
) -> ChoicePoolService:
    return ChoicePoolService(session, cache)


@router.get("")
def list_pools(
    admin: Admin = Depends(require_active_admin),
    service: ChoicePoolService = Depends(get_pool_service),
):
    return {"pools": service.list_pools_with_options()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_pool(
    payload: PoolCreate,
    admin: Admin = Depends(require_permission(Permission.MENU_CREATE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    pool = service.create_pool(payload)
    return {"pool": serialize_pool(pool, [], admin=True)}


@router.post("/reorder")
def reorder_pools(
    payload: ReorderRequest,
    admin: Admin = Depends(require_permission(Permission.MENU_REORDER)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    service.reorder_pools(payload.ordered_ids)
    return {"success": True}


@router.get("/{pool_id}")
def get_pool(
    pool_id: uuid.UUID,
    admin: Admin = Depends(require_active_admin),
    service: ChoicePoolService = Depends(get_pool_service),
):
    pool = service.get_pool(pool_id)
    return {"pool": serialize_pool(pool, service.list_options(pool.id), admin=True)}


@router.patch("/{pool_id}")
def update_pool(
    pool_id: uuid.UUID,
    payload: PoolUpdate,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    pool = service.update_pool(pool_id, payload)
    return {"pool": serialize_pool(pool, admin=True)}


@router.delete("/{pool_id}")
def delete_pool(
    pool_id: uuid.UUID,
    admin: Admin = Depends(require_permission(Permission.MENU_DELETE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    service.delete_pool(pool_id)
    return {"success": True}


@router.post("/{pool_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_pool(
    pool_id: uuid.UUID,
    payload: PoolDuplicate,
    admin: Admin = Depends(require_permission(Permission.MENU_CREATE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    """Copy a pool with all its options"""
    pool = service.duplicate_pool(pool_id, payload)
    return {"pool": serialize_pool(pool, service.list_options(pool.id), admin=True)}


@router.get("/{pool_id}/options")
def list_options(
    pool_id: uuid.UUID,
    admin: Admin = Depends(require_active_admin),
    service: ChoicePoolService = Depends(get_pool_service),
):
    service.get_pool(pool_id)
    return {"options": [serialize_option(option, admin=True) for option in service.list_options(pool_id)]}


@router.post("/{pool_id}/options", status_code=status.HTTP_201_CREATED)
def create_option(
    pool_id: uuid.UUID,
    payload: OptionCreate,
    admin: Admin = Depends(require_permission(Permission.MENU_CREATE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    option = service.create_option(pool_id, payload)
    return {"option": serialize_option(option, admin=True)}


@router.post("/{pool_id}/options/reorder")
def reorder_options(
    pool_id: uuid.UUID,
    payload: ReorderRequest,
    admin: Admin = Depends(require_permission(Permission.MENU_REORDER)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    service.reorder_options(pool_id, payload.ordered_ids)
    return {"success": True}


@router.patch("/{pool_id}/options/{option_id}")
def update_option(
    pool_id: uuid.UUID,
    option_id: uuid.UUID,
    payload: OptionUpdate,
    admin: Admin = Depends(require_permission(Permission.MENU_UPDATE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    option = service.update_option(pool_id, option_id, payload)
    return {"option": serialize_option(option, admin=True)}


@router.delete("/{pool_id}/options/{option_id}")
def delete_option(
    pool_id: uuid.UUID,
    option_id: uuid.UUID,
    admin: Admin = Depends(require_permission(Permission.MENU_DELETE)),
    service: ChoicePoolService = Depends(get_pool_service),
):
    service.delete_option(pool_id, option_id)
    return {"success": True}
