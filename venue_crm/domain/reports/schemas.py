"""Report response schemas"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class EntityCounts(BaseModel):
    clients: int = 0
    venues: int = 0
    proposals: int = 0
    bookings: int = 0


class ExpiringOption(BaseModel):
    bookingId: int
    clientName: Optional[str] = None
    venueName: Optional[str] = None
    optionExpiry: date
    daysRemaining: int
    totalValue: Decimal


class DashboardReport(BaseModel):
    scope: str
    counts: EntityCounts
    bookingsByStatus: dict[str, int]
    totalBookedValue: Decimal
    totalCommission: Decimal
    expiringOptions: list[ExpiringOption]
    expiringWithinDays: int
    claimsOutstanding: Decimal


class PipelineStage(BaseModel):
    status: str
    count: int = 0
    totalValue: Decimal
    commission: Decimal


class ProposalStage(BaseModel):
    status: str
    count: int = 0
    totalValue: Decimal
    expectedCommission: Decimal


class PipelineReport(BaseModel):
    scope: str
    stages: list[PipelineStage]
    proposals: list[ProposalStage]


class ClaimBucket(BaseModel):
    count: int = 0
    amount: Decimal


class CommissionReport(BaseModel):
    scope: str
    claimsByStatus: dict[str, ClaimBucket]
    expectedCommission: Decimal
    bookedCommission: Decimal
    claimed: Decimal
    paid: Decimal
    outstanding: Decimal
