"""
Admin delivery location endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
import uuid
import structlog

from campus_order.core.database import get_session
from campus_order.core.dependencies import require_permission
from campus_order.core.errors import AppError, Internal
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.schemas.delivery import DeliveryLocationCreate, DeliveryLocationUpdate
from campus_order.services.delivery import DeliveryLocationService, serialize_location

logger = structlog.get_logger(__name__)
router = APIRouter()

manage_locations = require_permission(Permission.SETTINGS_DELIVERY_LOCATIONS)


@router.get("")
def list_locations(admin: Admin = Depends(manage_locations), session: Session = Depends(get_session)):
    locations = DeliveryLocationService(session).list_locations()
    return {"locations": [serialize_location(location) for location in locations]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_location(
    payload: DeliveryLocationCreate,
    admin: Admin = Depends(manage_locations),
    session: Session = Depends(get_session),
):
    """Create a delivery location; the slug is derived from the condo name"""
    try:
        location = DeliveryLocationService(session).create_location(payload)
        return {"location": serialize_location(location)}
    except AppError:
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating delivery location: {e}")
        raise Internal("Failed to create delivery location")


@router.patch("/{location_id}")
def update_location(
    location_id: uuid.UUID,
    payload: DeliveryLocationUpdate,
    admin: Admin = Depends(manage_locations),
    session: Session = Depends(get_session),
):
    location = DeliveryLocationService(session).update_location(location_id, payload)
    return {"location": serialize_location(location)}


@router.delete("/{location_id}")
def delete_location(
    location_id: uuid.UUID,
    admin: Admin = Depends(manage_locations),
    session: Session = Depends(get_session),
):
    DeliveryLocationService(session).delete_location(location_id)
    return {"success": True}
