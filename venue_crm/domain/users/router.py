"""User administration router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_response import created_response, paginated_response, success_response
from ...auth import require_admin, require_permission
from ...database import get_db
from ...models import User
from ...permissions import Permission, Role
from ...shared.schemas import SortOrder
from .schemas import UserCreate, UserResponse, UserRoleUpdate
from .service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        provider=user.provider,
        createdAt=user.created_at,
        updatedAt=user.updated_at,
    )


@router.get("")
async def list_users(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    role: Optional[Role] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(None, alias="sortOrder"),
    current_user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    service: UserService = Depends(get_user_service),
):
    result = service.list_users(page, limit, role.value if role else None, search, sort_by, sort_order)
    result["data"] = [user_response(u) for u in result["data"]]
    return paginated_response(result)


@router.post("", status_code=201)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    service: UserService = Depends(get_user_service),
):
    """Pre-provision a user before their first sign-in"""
    user = service.create_user(data, current_user)
    return created_response(user_response(user))


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: int,
    data: UserRoleUpdate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    user = service.update_role(user_id, data, current_user)
    return success_response(user_response(user))
