"""Proposal domain schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.schemas import Money, Percent, RequestModel, UserSummary, require_value

ProposalStatus = Literal["draft", "sent"]
ChargeCategory = Literal["room_hire", "food_beverage", "av_equipment", "other"]

Quantity = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class ChargeLineInput(RequestModel):
    """One itemised cost; the total is always computed server-side"""

    id: Optional[str] = Field(None, max_length=64)
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Quantity
    unitPrice: Money
    category: ChargeCategory = "other"

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        return "other" if v is None else v


class ProposalVenueInput(RequestModel):
    venueId: int
    chargeLines: list[ChargeLineInput] = []
    commissionRate: Optional[Percent] = None  # Overrides the venue's standard commission
    notes: Optional[str] = None


def _unique_venues(venues: Optional[list[ProposalVenueInput]]):
    if venues:
        venue_ids = [v.venueId for v in venues]
        if len(venue_ids) != len(set(venue_ids)):
            raise ValueError("Each venue can only appear once in a proposal")
    return venues


class ProposalCreate(RequestModel):
    clientId: int
    status: ProposalStatus = "draft"
    notes: Optional[str] = None
    venues: list[ProposalVenueInput] = []

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return "draft" if v is None else v

    @model_validator(mode="after")
    def check_unique_venues(self):
        _unique_venues(self.venues)
        return self


class ProposalUpdate(RequestModel):
    """
    Partial update. When ``venues`` is given it replaces the proposal's venue
    list; either way every venue is repriced.
    """

    clientId: Optional[int] = None
    status: Optional[ProposalStatus] = None
    notes: Optional[str] = None
    venues: Optional[list[ProposalVenueInput]] = None

    @field_validator("clientId", "status", "venues")
    @classmethod
    def not_cleared(cls, v, info):
        return require_value(v, info.field_name)

    @model_validator(mode="after")
    def check_unique_venues(self):
        _unique_venues(self.venues)
        return self


class ChargeLineResponse(BaseModel):
    id: str
    description: str
    quantity: Decimal
    unitPrice: Decimal
    total: Decimal
    category: str


class ProposalVenueResponse(BaseModel):
    id: int
    venueId: int
    venueName: Optional[str] = None
    venueLocation: Optional[str] = None
    chargeLines: list[ChargeLineResponse]
    commissionRate: Optional[Decimal]
    effectiveCommissionRate: Decimal
    totalValue: Decimal
    expectedCommission: Decimal
    notes: Optional[str]


class ProposalClientSummary(BaseModel):
    id: int
    name: str
    company: Optional[str] = None


class ProposalResponse(BaseModel):
    id: int
    clientId: int
    client: Optional[ProposalClientSummary] = None
    status: str
    totalValue: Decimal
    expectedCommission: Decimal
    notes: Optional[str]
    venues: list[ProposalVenueResponse] = []
    bookingCount: int = 0
    createdBy: int
    createdByUser: Optional[UserSummary] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
