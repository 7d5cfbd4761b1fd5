"""User administration schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...permissions import Role
from ...shared.schemas import RequestModel
from ...shared.validators import validate_email


class UserCreate(RequestModel):
    """Pre-provision a user; provider details are filled on their first sign-in"""

    email: str = Field(..., max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    role: Role = Role.CONSULTANT

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class UserRoleUpdate(RequestModel):
    role: Role


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    provider: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class CurrentUserResponse(UserResponse):
    permissions: list[str] = []
