"""
Role-based permissions.

Two static roles map to fixed permission sets. The table is built once at
import time and exposed read-only; swapping it for a data-backed policy would
only need to replace ``get_user_permissions``.
"""

from collections.abc import Iterable
from enum import Enum
from types import MappingProxyType
from typing import Protocol


class Role(str, Enum):
    ADMIN = "admin"
    CONSULTANT = "consultant"


class Permission(str, Enum):
    # User management
    MANAGE_USERS = "manage_users"
    VIEW_ALL_USERS = "view_all_users"

    # Client management
    CREATE_CLIENT = "create_client"
    VIEW_CLIENT = "view_client"
    UPDATE_CLIENT = "update_client"
    DELETE_CLIENT = "delete_client"
    VIEW_ALL_CLIENTS = "view_all_clients"

    # Venue management
    CREATE_VENUE = "create_venue"
    VIEW_VENUE = "view_venue"
    UPDATE_VENUE = "update_venue"
    DELETE_VENUE = "delete_venue"
    VIEW_ALL_VENUES = "view_all_venues"

    # Proposal management
    CREATE_PROPOSAL = "create_proposal"
    VIEW_PROPOSAL = "view_proposal"
    UPDATE_PROPOSAL = "update_proposal"
    DELETE_PROPOSAL = "delete_proposal"
    VIEW_ALL_PROPOSALS = "view_all_proposals"

    # Booking management
    CREATE_BOOKING = "create_booking"
    VIEW_BOOKING = "view_booking"
    UPDATE_BOOKING = "update_booking"
    DELETE_BOOKING = "delete_booking"
    VIEW_ALL_BOOKINGS = "view_all_bookings"

    # Commission management
    CREATE_COMMISSION_CLAIM = "create_commission_claim"
    VIEW_COMMISSION_CLAIM = "view_commission_claim"
    UPDATE_COMMISSION_CLAIM = "update_commission_claim"
    DELETE_COMMISSION_CLAIM = "delete_commission_claim"
    VIEW_ALL_COMMISSION_CLAIMS = "view_all_commission_claims"

    # Reporting
    VIEW_REPORTS = "view_reports"
    VIEW_ALL_REPORTS = "view_all_reports"
    EXPORT_DATA = "export_data"

    # System administration
    MANAGE_SYSTEM_SETTINGS = "manage_system_settings"
    VIEW_AUDIT_LOGS = "view_audit_logs"


class HasRole(Protocol):
    id: int
    role: str


_CONSULTANT_PERMISSIONS = frozenset(
    {
        Permission.CREATE_CLIENT,
        Permission.VIEW_CLIENT,
        Permission.UPDATE_CLIENT,
        Permission.DELETE_CLIENT,
        Permission.CREATE_VENUE,
        Permission.VIEW_VENUE,
        Permission.UPDATE_VENUE,
        Permission.DELETE_VENUE,
        Permission.CREATE_PROPOSAL,
        Permission.VIEW_PROPOSAL,
        Permission.UPDATE_PROPOSAL,
        Permission.DELETE_PROPOSAL,
        Permission.CREATE_BOOKING,
        Permission.VIEW_BOOKING,
        Permission.UPDATE_BOOKING,
        Permission.DELETE_BOOKING,
        Permission.CREATE_COMMISSION_CLAIM,
        Permission.VIEW_COMMISSION_CLAIM,
        Permission.UPDATE_COMMISSION_CLAIM,
        Permission.DELETE_COMMISSION_CLAIM,
        Permission.VIEW_REPORTS,
    }
)

ROLE_PERMISSIONS = MappingProxyType(
    {
        Role.ADMIN: frozenset(Permission),  # Admin has every permission
        Role.CONSULTANT: _CONSULTANT_PERMISSIONS,
    }
)


def _role_of(user: HasRole):
    try:
        return Role(user.role)
    except ValueError:
        return None


def get_user_permissions(role) -> frozenset:
    """Get all permissions for a role (empty for unknown roles)"""
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def has_permission(user: HasRole, permission: Permission) -> bool:
    """Check if a user has a specific permission"""
    role = _role_of(user)
    return role is not None and permission in ROLE_PERMISSIONS[role]


def has_any_permission(user: HasRole, permissions: Iterable[Permission]) -> bool:
    return any(has_permission(user, permission) for permission in permissions)


def has_all_permissions(user: HasRole, permissions: Iterable[Permission]) -> bool:
    return all(has_permission(user, permission) for permission in permissions)


def can_access_own_resource(user: HasRole, resource_creator_id: int) -> bool:
    """Admins can access all resources, consultants only the ones they created"""
    if user.role == Role.ADMIN.value:
        return True
    return user.id == resource_creator_id


def can_view_all_resources(user: HasRole) -> bool:
    return user.role == Role.ADMIN.value
