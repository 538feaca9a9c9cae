"""
Signed-in user profile endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from campus_order.core.database import get_session
from campus_order.core.dependencies import require_user
from campus_order.models.user import User
from campus_order.schemas.auth import PhoneUpdateRequest, UserResponse
from campus_order.schemas.delivery import DeliveryPreferenceUpdate
from campus_order.services.accounts import AccountService

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(require_user)):
    return user


@router.put("/phone", response_model=UserResponse)
def update_phone(
    payload: PhoneUpdateRequest,
    user: User = Depends(require_user),
    session: Session = Depends(get_session),
):
    """Save the phone number used for delivery contact"""
    return AccountService(session).update_phone(user.id, payload.phone_number)


@router.put("/delivery-location", response_model=UserResponse)
def update_delivery_location(
    payload: DeliveryPreferenceUpdate,
    user: User = Depends(require_user),
    session: Session = Depends(get_session),
):
    """Save the delivery spot preselected at checkout"""
    return AccountService(session).update_delivery_preference(user.id, payload.location_id, payload.building_id)
