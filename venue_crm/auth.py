import logging
from collections.abc import Iterable
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .errors import forbidden, unauthorized
from .models import User
from .permissions import Permission, Role, can_access_own_resource, has_any_permission, has_permission
from .security_utils import decode_access_token, is_token_revoked

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as MISSING_TOKEN in our envelope
security = HTTPBearer(auto_error=False)


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict[str, Any]:
    """Verified claims of the bearer token on the current request"""
    if not credentials or not credentials.credentials:
        logger.warning("⚠️ Request without bearer token")
        raise unauthorized("Access token is required", code="MISSING_TOKEN")

    payload = decode_access_token(credentials.credentials)

    if is_token_revoked(payload["jti"]):
        logger.warning(f"⚠️ Revoked token presented for user {payload.get('sub')}")
        raise unauthorized("Token has been revoked", code="TOKEN_REVOKED")

    return payload


async def get_current_user(
    payload: dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    """Get the current user, checking that the token's user still exists"""
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise unauthorized("Invalid or expired token", code="INVALID_TOKEN") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token for missing user {user_id}")
        raise unauthorized("User no longer exists", code="USER_NOT_FOUND")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


def require_permission(permission: Permission):
    """
    Dependency factory requiring a single permission

    Example usage:
        @router.post("", dependencies=[Depends(require_permission(Permission.CREATE_CLIENT))])
    """

    async def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, permission):
            logger.warning(f"🚫 {current_user.email} lacks permission {permission.value}")
            raise forbidden(f"Permission required: {permission.value}")
        return current_user

    return permission_checker


def require_any_permission(permissions: Iterable[Permission]):
    permissions = list(permissions)

    async def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_any_permission(current_user, permissions):
            logger.warning(f"🚫 {current_user.email} lacks all of {[p.value for p in permissions]}")
            raise forbidden(
                f"One of these permissions required: {', '.join(p.value for p in permissions)}"
            )
        return current_user

    return permission_checker


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != Role.ADMIN.value:
        logger.warning(f"🚫 {current_user.email} attempted an admin-only action")
        raise forbidden("Insufficient permissions for this action")
    return current_user


def ensure_resource_access(user: User, resource_creator_id: int) -> None:
    """Admins can access every resource, consultants only what they created"""
    if not can_access_own_resource(user, resource_creator_id):
        logger.warning(f"🚫 {user.email} denied access to resource owned by user {resource_creator_id}")
        raise forbidden("You can only access resources you created")
