"""
Request dependencies for FastAPI

Long-lived collaborators (cache, event bus, session resolver, email client)
are built once in the application lifespan and read from app.state here.
"""

from fastapi import Depends
from starlette.requests import HTTPConnection
from sqlmodel import Session, select
from typing import Callable, Optional
import structlog

from campus_order.core.auth import SessionIdentity, SessionResolver
from campus_order.core.cache import TaggedCache
from campus_order.core.config import Settings, get_settings
from campus_order.core.database import get_session
from campus_order.core.errors import Forbidden, Unauthenticated
from campus_order.core.events import EventBus
from campus_order.core.permissions import Permission, has_permission, parse_role
from campus_order.models.admin import Admin
from campus_order.models.user import User
from campus_order.services.cart import CartService
from campus_order.services.email import EmailClient
from campus_order.services.menu import MenuHierarchyAssembler
from campus_order.services.orders import OrderService
from campus_order.services.shop import ShopStatusGate

logger = structlog.get_logger(__name__)


# Application collaborators

def get_cache(connection: HTTPConnection) -> TaggedCache:
    return connection.app.state.cache


def get_event_bus(connection: HTTPConnection) -> EventBus:
    return connection.app.state.event_bus


def get_email_client(connection: HTTPConnection) -> EmailClient:
    return connection.app.state.email_client


def get_session_resolver(connection: HTTPConnection) -> SessionResolver:
    return connection.app.state.session_resolver


# Identity

def get_current_identity(
    connection: HTTPConnection,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[SessionIdentity]:
    """Verified session identity, or None"""
    return resolver.resolve(connection)


def require_user(
    identity: Optional[SessionIdentity] = Depends(get_current_identity),
    session: Session = Depends(get_session),
) -> User:
    """Get the signed-in user or raise Unauthenticated"""
    if identity is None:
        raise Unauthenticated()
    user = session.get(User, identity.user_id)
    if user is None:
        logger.warning(f"Session for unknown user {identity.user_id}")
        raise Unauthenticated()
    return user


def load_active_admin(session: Session, identity: Optional[SessionIdentity]) -> Optional[Admin]:
    """Admin row for identity; None when missing, inactive or with an unknown role"""
    if identity is None:
        return None
    admin = session.exec(select(Admin).where(Admin.user_id == identity.user_id)).first()
    if admin is None or not admin.is_active or parse_role(admin.role) is None:
        return None
    return admin


def require_active_admin(
    identity: Optional[SessionIdentity] = Depends(get_current_identity),
    session: Session = Depends(get_session),
) -> Admin:
    """Get the caller's active admin row or raise Forbidden"""
    admin = load_active_admin(session, identity)
    if admin is None:
        raise Forbidden()
    return admin


def require_permission(required_permission: Permission) -> Callable[..., Admin]:
    """Dependency factory to check permissions"""
    def check_permission(admin: Admin = Depends(require_active_admin)) -> Admin:
        if not has_permission(admin.role, required_permission):
            logger.warning(f"Admin {admin.id} ({admin.role}) lacks {required_permission.value}")
            raise Forbidden(f"Permission required: {required_permission.value}")
        return admin
    return check_permission


def require_super_admin(admin: Admin = Depends(require_active_admin)) -> Admin:
    """Only super admins may remove admins"""
    if not has_permission(admin.role, Permission.ADMIN_REMOVE):
        raise Forbidden("Only super admins can remove admins")
    return admin


# Services

def get_shop_gate(
    session: Session = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> ShopStatusGate:
    return ShopStatusGate(session, cache, ttl_seconds=settings.SHOP_STATUS_TTL_SECONDS)


def get_cart_service(
    session: Session = Depends(get_session),
    shop_gate: ShopStatusGate = Depends(get_shop_gate),
    settings: Settings = Depends(get_settings),
) -> CartService:
    return CartService(session, shop_gate, max_quantity_per_line=settings.MAX_QUANTITY_PER_LINE)


def get_order_service(
    session: Session = Depends(get_session),
    cart_service: CartService = Depends(get_cart_service),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(session, cart_service, settings)


def get_menu_assembler(
    session: Session = Depends(get_session),
    cache: TaggedCache = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> MenuHierarchyAssembler:
    return MenuHierarchyAssembler(session, cache, ttl_seconds=settings.MENU_CACHE_TTL_SECONDS)
