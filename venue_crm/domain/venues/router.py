"""Venue router - FastAPI endpoints for venue operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_response import created_response, paginated_response, success_response
from ...auth import require_permission
from ...database import get_db
from ...models import User, Venue
from ...permissions import Permission
from ...shared.money import quantize_money
from ...shared.schemas import SortOrder, user_summary
from .schemas import (
    VenueBookingSummary,
    VenueCounts,
    VenueCreate,
    VenueDetailResponse,
    VenueProposalSummary,
    VenueResponse,
    VenueUpdate,
)
from .service import VenueService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/venues", tags=["Venues"])


def get_venue_service(db: Session = Depends(get_db)) -> VenueService:
    """Dependency injection for VenueService"""
    return VenueService(db)


def venue_response(venue: Venue, counts: Optional[dict] = None) -> VenueResponse:
    return VenueResponse(
        id=venue.id,
        name=venue.name,
        location=venue.location,
        contactName=venue.contact_name,
        email=venue.email,
        phone=venue.phone,
        standardCommission=quantize_money(venue.standard_commission),
        notes=venue.notes,
        createdBy=venue.created_by,
        createdByUser=user_summary(venue.created_by_user),
        counts=VenueCounts(**counts) if counts is not None else None,
        createdAt=venue.created_at,
        updatedAt=venue.updated_at,
    )


def venue_detail_response(venue: Venue) -> VenueDetailResponse:
    proposal_venues = sorted(venue.proposal_venues, key=lambda pv: pv.id, reverse=True)
    bookings = sorted(venue.bookings, key=lambda b: b.id, reverse=True)
    return VenueDetailResponse(
        **venue_response(
            venue, {"proposals": len(proposal_venues), "bookings": len(bookings)}
        ).model_dump(),
        proposals=[
            VenueProposalSummary(
                proposalId=pv.proposal_id,
                status=pv.proposal.status,
                clientId=pv.proposal.client_id,
                clientName=pv.proposal.client.name if pv.proposal.client else None,
                totalValue=quantize_money(pv.total_value),
                expectedCommission=quantize_money(pv.expected_commission),
            )
            for pv in proposal_venues
        ],
        bookings=[
            VenueBookingSummary(
                id=b.id,
                status=b.status,
                clientId=b.client_id,
                clientName=b.client.name if b.client else None,
                totalValue=quantize_money(b.total_value),
                commissionAmount=quantize_money(b.commission_amount),
            )
            for b in bookings
        ],
    )


@router.get("")
async def list_venues(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(None, alias="sortOrder"),
    current_user: User = Depends(require_permission(Permission.VIEW_VENUE)),
    service: VenueService = Depends(get_venue_service),
):
    """List venues with pagination, search, location filter and sorting"""
    result = service.list_venues(current_user, page, limit, search, location, sort_by, sort_order)
    counts = result.pop("counts")
    result["data"] = [venue_response(v, counts.get(v.id)) for v in result["data"]]
    return paginated_response(result)


@router.get("/{venue_id}")
async def get_venue(
    venue_id: int,
    current_user: User = Depends(require_permission(Permission.VIEW_VENUE)),
    service: VenueService = Depends(get_venue_service),
):
    venue = service.get_venue(venue_id, current_user)
    return success_response(venue_detail_response(venue))


@router.post("", status_code=201)
async def create_venue(
    data: VenueCreate,
    current_user: User = Depends(require_permission(Permission.CREATE_VENUE)),
    service: VenueService = Depends(get_venue_service),
):
    venue = service.create_venue(data, current_user)
    return created_response(venue_response(venue))


@router.put("/{venue_id}")
async def update_venue(
    venue_id: int,
    data: VenueUpdate,
    current_user: User = Depends(require_permission(Permission.UPDATE_VENUE)),
    service: VenueService = Depends(get_venue_service),
):
    venue = service.update_venue(venue_id, data, current_user)
    return success_response(venue_response(venue))


@router.delete("/{venue_id}")
async def delete_venue(
    venue_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_VENUE)),
    service: VenueService = Depends(get_venue_service),
):
    """Delete a venue that no proposal or booking references"""
    service.delete_venue(venue_id, current_user)
    return success_response(message="Venue deleted successfully")
