"""Venue domain schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.schemas import ContactFieldsMixin, Percent, RequestModel, UserSummary, require_value


class VenueCreate(ContactFieldsMixin, RequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=500)
    contactName: Optional[str] = Field(None, max_length=255)
    standardCommission: Percent = Decimal("0")
    notes: Optional[str] = None

    @field_validator("standardCommission", mode="before")
    @classmethod
    def default_commission(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return Decimal("0")
        return v


class VenueUpdate(ContactFieldsMixin, RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=500)
    contactName: Optional[str] = Field(None, max_length=255)
    standardCommission: Optional[Percent] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_cleared(cls, v):
        return require_value(v, "Name")

    @field_validator("standardCommission")
    @classmethod
    def commission_not_cleared(cls, v):
        return require_value(v, "Standard commission")


class VenueCounts(BaseModel):
    proposals: int = 0
    bookings: int = 0


class VenueResponse(BaseModel):
    id: int
    name: str
    location: Optional[str]
    contactName: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    standardCommission: Decimal
    notes: Optional[str]
    createdBy: int
    createdByUser: Optional[UserSummary] = None
    counts: Optional[VenueCounts] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class VenueProposalSummary(BaseModel):
    proposalId: int
    status: str
    clientId: int
    clientName: Optional[str] = None
    totalValue: Decimal
    expectedCommission: Decimal


class VenueBookingSummary(BaseModel):
    id: int
    status: str
    clientId: int
    clientName: Optional[str] = None
    totalValue: Decimal
    commissionAmount: Decimal


class VenueDetailResponse(VenueResponse):
    proposals: list[VenueProposalSummary] = []
    bookings: list[VenueBookingSummary] = []
