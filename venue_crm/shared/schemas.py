"""Pydantic building blocks shared by the domain schemas"""

from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .validators import blank_to_none, validate_email, validate_phone

# Money and percentages as exact decimals; JSON output renders them as strings
Money = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]
Percent = Annotated[Decimal, Field(ge=0, le=100, max_digits=5, decimal_places=2)]

SortOrder = Literal["asc", "desc"]


class RequestModel(BaseModel):
    """Base for request bodies: unknown keys are ignored and blank strings become None"""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def blank_strings_to_none(cls, v):
        return blank_to_none(v)


class ContactFieldsMixin(BaseModel):
    """Email/phone validation shared by clients and venues"""

    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


def require_value(v, label: str):
    """Reject an explicit null for a column that cannot be cleared"""
    if v is None:
        raise ValueError(f"{label} cannot be empty")
    return v


class UserSummary(BaseModel):
    id: int
    name: str
    email: str


def user_summary(user) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary(id=user.id, name=user.name, email=user.email)
