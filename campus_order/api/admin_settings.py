"""
Admin shop settings endpoints
"""

from fastapi import APIRouter, BackgroundTasks, Depends

from campus_order.core.dependencies import get_event_bus, get_shop_gate, require_active_admin, require_permission
from campus_order.core.events import EventBus, ShopStatusChanged, schedule_events
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.schemas.admin import ShopStatusUpdate
from campus_order.services.shop import ShopStatusGate

router = APIRouter()


@router.get("/shop")
def get_shop_settings(
    admin: Admin = Depends(require_active_admin),
    shop_gate: ShopStatusGate = Depends(get_shop_gate),
):
    return {"status": shop_gate.get_status().to_dict()}


@router.post("/shop")
def update_shop_settings(
    payload: ShopStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_permission(Permission.SHOP_TOGGLE)),
    shop_gate: ShopStatusGate = Depends(get_shop_gate),
    event_bus: EventBus = Depends(get_event_bus),
):
    """Open or close the shop"""
    shop_status = shop_gate.set_status(
        payload.is_open,
        admin.id,
        closed_message_en=payload.closed_message_en,
        closed_message_mm=payload.closed_message_mm,
    )
    schedule_events(background_tasks, event_bus, [ShopStatusChanged(
        is_open=shop_status.is_open,
        closed_message_en=shop_status.closed_message_en,
        closed_message_mm=shop_status.closed_message_mm,
        updated_by=admin.id,
    )])
    return {"status": shop_status.to_dict()}
