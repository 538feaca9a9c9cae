"""
Grant admin access to an existing user

Usage: python -m campus_order.scripts.seed_admin someone@example.com [role]
"""

import sys

from sqlmodel import Session, select
import structlog

from campus_order.core.database import engine
from campus_order.core.permissions import AdminRole, parse_role
from campus_order.models.admin import Admin
from campus_order.models.user import User
from campus_order.services.accounts import normalize_email

logger = structlog.get_logger(__name__)


def seed_admin(session: Session, email: str, role: AdminRole = AdminRole.SUPER_ADMIN) -> Admin:
    """Create or reactivate the admin row for `email` with the given role"""
    user = session.exec(select(User).where(User.email == normalize_email(email))).first()
    if user is None:
        raise LookupError(f"No user with email {email}; sign up first")

    admin = session.exec(select(Admin).where(Admin.user_id == user.id)).first()
    if admin is None:
        admin = Admin(user_id=user.id, email=user.email, name=user.name)
    admin.role = role.value
    admin.is_active = True
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info(f"Granted {role.value} to user {user.id}")
    return admin


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__.strip())
        sys.exit(2)

    role = parse_role(argv[1]) if len(argv) > 1 else AdminRole.SUPER_ADMIN
    if role is None:
        logger.error(f"Unknown role {argv[1]}")
        sys.exit(2)

    try:
        with Session(engine) as session:
            seed_admin(session, argv[0], role)
    except LookupError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
