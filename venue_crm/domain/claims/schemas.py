"""Commission claim schemas"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.schemas import Money, RequestModel, UserSummary, require_value


class ClaimStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class ClaimCreate(RequestModel):
    """
    Raise a commission claim against a booking.

    ``amount`` defaults to the booking's commission amount and an invoice
    number is generated when none is given.
    """

    bookingId: int
    amount: Optional[Money] = None
    status: ClaimStatus = ClaimStatus.DRAFT
    invoiceNumber: Optional[str] = Field(None, max_length=100)
    sentDate: Optional[date] = None
    paidDate: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return ClaimStatus.DRAFT if v is None else v


class ClaimUpdate(RequestModel):
    amount: Optional[Money] = None
    status: Optional[ClaimStatus] = None
    invoiceNumber: Optional[str] = Field(None, max_length=100)
    sentDate: Optional[date] = None
    paidDate: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("amount", "status")
    @classmethod
    def not_cleared(cls, v, info):
        return require_value(v, info.field_name)


class ClaimBookingSummary(BaseModel):
    id: int
    status: str
    clientId: int
    clientName: Optional[str] = None
    venueId: int
    venueName: Optional[str] = None
    commissionAmount: Decimal


class ClaimResponse(BaseModel):
    id: int
    bookingId: int
    booking: Optional[ClaimBookingSummary] = None
    status: str
    effectiveStatus: str
    isOverdue: bool = False
    amount: Decimal
    sentDate: Optional[date] = None
    paidDate: Optional[date] = None
    invoiceNumber: Optional[str] = None
    notes: Optional[str] = None
    createdBy: int
    createdByUser: Optional[UserSummary] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
