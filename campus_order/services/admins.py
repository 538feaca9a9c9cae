"""
Admin roster management
"""

from typing import Any, Dict, List
from sqlmodel import Session, select
import uuid
import structlog

from campus_order.core.errors import Conflict, InvalidPayload, NotFound
from campus_order.models.admin import Admin
from campus_order.models.user import User
from campus_order.services.email import mask_email

logger = structlog.get_logger(__name__)

SELF_REMOVAL_MESSAGE = "You can't remove yourself! Ask another super admin to do it."


def serialize_admin(admin: Admin) -> Dict[str, Any]:
    return {
        "id": str(admin.id),
        "userId": str(admin.user_id),
        "email": admin.email,
        "name": admin.name,
        "role": admin.role,
        "isActive": admin.is_active,
        "createdAt": admin.created_at.isoformat(),
    }


class AdminRosterService:
    def __init__(self, session: Session):
        self.session = session

    def list_admins(self) -> List[Admin]:
        return list(self.session.exec(select(Admin).order_by(Admin.created_at, Admin.id)).all())

    def add_admin(self, email: str, role: str) -> Admin:
        """Promote an existing user account"""
        user = self.session.exec(select(User).where(User.email == email.lower())).first()
        if user is None:
            raise NotFound("No user with this email")
        if self.session.exec(select(Admin).where(Admin.user_id == user.id)).first() is not None:
            raise Conflict("User is already an admin")

        admin = Admin(user_id=user.id, email=user.email, name=user.name, role=role)
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        logger.info(f"Added {role} {mask_email(user.email)}")
        return admin

    def remove_admin(self, actor: Admin, user_id: uuid.UUID):
        """Delete the admin row for user_id; removing yourself is rejected"""
        if actor.user_id == user_id:
            logger.warning(f"Admin {actor.id} attempted to remove themselves")
            raise InvalidPayload(SELF_REMOVAL_MESSAGE)

        admin = self.session.exec(select(Admin).where(Admin.user_id == user_id)).first()
        if admin is None:
            raise NotFound("Admin not found")
        self.session.delete(admin)
        self.session.commit()
        logger.info(f"Admin {actor.id} removed admin for user {user_id}")
