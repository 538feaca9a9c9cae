"""
Admin roster endpoints
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from campus_order.core.database import get_session
from campus_order.core.dependencies import require_permission, require_super_admin
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.schemas.admin import AddAdminRequest, RemoveAdminRequest
from campus_order.services.admins import AdminRosterService, serialize_admin

router = APIRouter()


@router.get("/list")
def list_admins(
    admin: Admin = Depends(require_permission(Permission.ADMIN_LIST)),
    session: Session = Depends(get_session),
):
    return {"admins": [serialize_admin(row) for row in AdminRosterService(session).list_admins()]}


@router.post("/add", status_code=status.HTTP_201_CREATED)
def add_admin(
    payload: AddAdminRequest,
    admin: Admin = Depends(require_permission(Permission.ADMIN_ADD)),
    session: Session = Depends(get_session),
):
    created = AdminRosterService(session).add_admin(payload.email, payload.role)
    return {"admin": serialize_admin(created)}


@router.delete("/remove")
def remove_admin(
    payload: RemoveAdminRequest,
    admin: Admin = Depends(require_super_admin),
    session: Session = Depends(get_session),
):
    """Remove another admin; super admins cannot remove themselves"""
    AdminRosterService(session).remove_admin(admin, payload.user_id)
    return {"success": True}
