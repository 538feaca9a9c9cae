"""
RBAC (Role-Based Access Control) permission system

Admin roles form an ordered hierarchy (moderator < admin < super_admin).
Every permission names the lowest role that holds it, and higher roles
inherit everything below them.
"""

from enum import Enum
from typing import Dict, Optional, Set


class AdminRole(str, Enum):
    """Admin role tiers, lowest first"""
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def rank(self) -> int:
        return ROLE_HIERARCHY.index(self)


ROLE_HIERARCHY = [AdminRole.MODERATOR, AdminRole.ADMIN, AdminRole.SUPER_ADMIN]


class Permission(str, Enum):
    """Permission definitions"""
    # Order permissions
    ORDER_VIEW = "order:view"
    ORDER_ACCEPT = "order:accept"
    ORDER_CANCEL = "order:cancel"
    ORDER_HANDOFF = "order:handoff"
    ORDER_DELIVER = "order:deliver"
    ORDER_VERIFY_PAYMENT = "order:verify_payment"
    ORDER_REJECT_PAYMENT = "order:reject_payment"

    # Shop permissions
    SHOP_TOGGLE = "shop:toggle"
    ITEM_TOGGLE_STOCK = "item:toggle_stock"

    # Menu permissions
    MENU_CREATE = "menu:create"
    MENU_UPDATE = "menu:update"
    MENU_DELETE = "menu:delete"
    MENU_REORDER = "menu:reorder"

    # Settings permissions
    SETTINGS_DELIVERY_LOCATIONS = "settings:delivery_locations"
    SETTINGS_PROMPTPAY_ACCOUNTS = "settings:promptpay_accounts"

    # Reporting permissions
    REPORTS_VIEW = "reports:view"

    # Admin management permissions
    ADMIN_LIST = "admin:list"
    ADMIN_ADD = "admin:add"
    ADMIN_REMOVE = "admin:remove"


# Lowest role granted each permission
PERMISSION_MINIMUM_ROLE: Dict[Permission, AdminRole] = {
    Permission.ORDER_VIEW: AdminRole.MODERATOR,
    Permission.ORDER_ACCEPT: AdminRole.MODERATOR,
    Permission.ORDER_CANCEL: AdminRole.MODERATOR,
    Permission.ORDER_HANDOFF: AdminRole.MODERATOR,
    Permission.ORDER_DELIVER: AdminRole.MODERATOR,
    Permission.ORDER_VERIFY_PAYMENT: AdminRole.MODERATOR,
    Permission.ORDER_REJECT_PAYMENT: AdminRole.MODERATOR,
    Permission.SHOP_TOGGLE: AdminRole.MODERATOR,
    Permission.ITEM_TOGGLE_STOCK: AdminRole.MODERATOR,
    Permission.ADMIN_LIST: AdminRole.MODERATOR,
    Permission.MENU_CREATE: AdminRole.ADMIN,
    Permission.MENU_UPDATE: AdminRole.ADMIN,
    Permission.MENU_DELETE: AdminRole.ADMIN,
    Permission.MENU_REORDER: AdminRole.ADMIN,
    Permission.SETTINGS_DELIVERY_LOCATIONS: AdminRole.ADMIN,
    Permission.SETTINGS_PROMPTPAY_ACCOUNTS: AdminRole.ADMIN,
    Permission.REPORTS_VIEW: AdminRole.ADMIN,
    Permission.ADMIN_ADD: AdminRole.SUPER_ADMIN,
    Permission.ADMIN_REMOVE: AdminRole.SUPER_ADMIN,
}


def parse_role(role: Optional[str]) -> Optional[AdminRole]:
    """Return the AdminRole for a stored role string, or None if unknown"""
    if not role:
        return None
    try:
        return AdminRole(role.lower())
    except ValueError:
        return None


def is_role_at_least(role: AdminRole, minimum: AdminRole) -> bool:
    """Check whether role sits at or above minimum in the hierarchy"""
    return role.rank >= minimum.rank


def get_permissions_for_role(role: str) -> Set[Permission]:
    """Get permissions for a given role"""
    admin_role = parse_role(role)
    if admin_role is None:
        return set()
    return {
        permission
        for permission, minimum in PERMISSION_MINIMUM_ROLE.items()
        if is_role_at_least(admin_role, minimum)
    }


# Role permission mapping
ROLE_PERMISSIONS: Dict[AdminRole, Set[Permission]] = {
    role: get_permissions_for_role(role.value) for role in ROLE_HIERARCHY
}


def has_permission(role: str, required_permission: Permission) -> bool:
    """Check if a role grants the required permission"""
    admin_role = parse_role(role)
    if admin_role is None:
        return False
    return required_permission in ROLE_PERMISSIONS[admin_role]
