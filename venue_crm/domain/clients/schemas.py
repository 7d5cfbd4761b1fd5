"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.schemas import ContactFieldsMixin, RequestModel, UserSummary, require_value


class ClientCreate(ContactFieldsMixin, RequestModel):
    """Schema for creating a new client"""

    name: str = Field(..., min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    contactName: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class ClientUpdate(ContactFieldsMixin, RequestModel):
    """Schema for updating an existing client; omitted fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    contactName: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_cleared(cls, v):
        return require_value(v, "Name")


class RelatedCounts(BaseModel):
    proposals: int = 0
    bookings: int = 0


class ClientProposalSummary(BaseModel):
    id: int
    status: str
    totalValue: Decimal
    expectedCommission: Decimal
    createdAt: Optional[datetime] = None


class ClientBookingSummary(BaseModel):
    id: int
    status: str
    totalValue: Decimal
    commissionAmount: Decimal
    venueId: int
    venueName: Optional[str] = None
    createdAt: Optional[datetime] = None


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    name: str
    company: Optional[str]
    contactName: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    notes: Optional[str]
    createdBy: int
    createdByUser: Optional[UserSummary] = None
    counts: Optional[RelatedCounts] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ClientDetailResponse(ClientResponse):
    proposals: list[ClientProposalSummary] = []
    bookings: list[ClientBookingSummary] = []
