"""Booking domain schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.schemas import Money, RequestModel, UserSummary, require_value
from .workflow import BookingStatus


class BookingCreate(RequestModel):
    """Convert one venue of a proposal into a booking"""

    proposalId: int
    venueId: int
    optionExpiry: Optional[date] = None
    notes: Optional[str] = None


class BookingUpdate(RequestModel):
    """Editable booking fields; status changes go through the status endpoint"""

    optionExpiry: Optional[date] = None
    totalValue: Optional[Money] = None
    commissionAmount: Optional[Money] = None
    notes: Optional[str] = None

    @field_validator("totalValue", "commissionAmount")
    @classmethod
    def amounts_not_cleared(cls, v, info):
        return require_value(v, info.field_name)


class BookingStatusUpdate(RequestModel):
    status: BookingStatus
    optionExpiry: Optional[date] = None
    notes: Optional[str] = None


class BookingDocument(BaseModel):
    id: str
    filename: str
    key: str
    contentType: str
    size: int
    uploadedAt: str
    url: Optional[str] = None


class BookingPartySummary(BaseModel):
    id: int
    name: str
    detail: Optional[str] = Field(None, description="Company for clients, location for venues")


class BookingResponse(BaseModel):
    id: int
    proposalId: int
    clientId: int
    client: Optional[BookingPartySummary] = None
    venueId: int
    venue: Optional[BookingPartySummary] = None
    status: str
    allowedTransitions: list[str] = []
    optionExpiry: Optional[date] = None
    isOptionExpired: bool = False
    totalValue: Decimal
    commissionAmount: Decimal
    documents: list[BookingDocument] = []
    claimCount: int = 0
    notes: Optional[str] = None
    createdBy: int
    createdByUser: Optional[UserSummary] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
