"""Proposal router - FastAPI endpoints for proposals"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...api_response import created_response, paginated_response, success_response
from ...auth import require_any_permission, require_permission
from ...database import get_db
from ...models import Proposal, ProposalVenue, User
from ...permissions import Permission
from ...services.pdf_generator import ProposalPDFGenerator
from ...shared.money import quantize_money
from ...shared.schemas import SortOrder, user_summary
from .calculations import effective_rate
from .schemas import (
    ChargeLineResponse,
    ProposalClientSummary,
    ProposalCreate,
    ProposalResponse,
    ProposalStatus,
    ProposalUpdate,
    ProposalVenueResponse,
)
from .service import ProposalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proposals", tags=["Proposals"])


def get_proposal_service(db: Session = Depends(get_db)) -> ProposalService:
    """Dependency injection for ProposalService"""
    return ProposalService(db)


def proposal_venue_response(row: ProposalVenue) -> ProposalVenueResponse:
    venue = row.venue
    standard = venue.standard_commission if venue is not None else 0
    return ProposalVenueResponse(
        id=row.id,
        venueId=row.venue_id,
        venueName=venue.name if venue else None,
        venueLocation=venue.location if venue else None,
        chargeLines=[ChargeLineResponse(**line) for line in (row.charge_lines or [])],
        commissionRate=quantize_money(row.commission_rate) if row.commission_rate is not None else None,
        effectiveCommissionRate=quantize_money(effective_rate(row.commission_rate, standard)),
        totalValue=quantize_money(row.total_value),
        expectedCommission=quantize_money(row.expected_commission),
        notes=row.notes,
    )


def proposal_response(proposal: Proposal, booking_count: int = 0) -> ProposalResponse:
    client = proposal.client
    return ProposalResponse(
        id=proposal.id,
        clientId=proposal.client_id,
        client=ProposalClientSummary(id=client.id, name=client.name, company=client.company) if client else None,
        status=proposal.status,
        totalValue=quantize_money(proposal.total_value),
        expectedCommission=quantize_money(proposal.expected_commission),
        notes=proposal.notes,
        venues=[proposal_venue_response(row) for row in proposal.venues],
        bookingCount=booking_count,
        createdBy=proposal.created_by,
        createdByUser=user_summary(proposal.created_by_user),
        createdAt=proposal.created_at,
        updatedAt=proposal.updated_at,
    )


@router.get("")
async def list_proposals(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    status: Optional[ProposalStatus] = Query(None),
    client_id: Optional[int] = Query(None, alias="clientId"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(None, alias="sortOrder"),
    current_user: User = Depends(require_permission(Permission.VIEW_PROPOSAL)),
    service: ProposalService = Depends(get_proposal_service),
):
    """List proposals with status/client filters"""
    result = service.list_proposals(
        current_user, page, limit, status, client_id, search, sort_by, sort_order
    )
    booking_counts = result.pop("bookingCounts")
    result["data"] = [proposal_response(p, booking_counts.get(p.id, 0)) for p in result["data"]]
    return paginated_response(result)


@router.get("/{proposal_id}")
async def get_proposal(
    proposal_id: int,
    current_user: User = Depends(require_permission(Permission.VIEW_PROPOSAL)),
    service: ProposalService = Depends(get_proposal_service),
):
    proposal = service.get_proposal(proposal_id, current_user)
    return success_response(proposal_response(proposal, service.booking_count(proposal.id)))


@router.get("/{proposal_id}/pdf")
async def download_proposal_pdf(
    proposal_id: int,
    current_user: User = Depends(
        require_any_permission([Permission.VIEW_PROPOSAL, Permission.EXPORT_DATA])
    ),
    service: ProposalService = Depends(get_proposal_service),
):
    """Render the proposal as a client-facing PDF"""
    proposal = service.get_proposal(proposal_id, current_user)
    pdf_bytes = ProposalPDFGenerator(proposal).generate()
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=proposal-{proposal.id}.pdf"},
    )


@router.post("", status_code=201)
async def create_proposal(
    data: ProposalCreate,
    current_user: User = Depends(require_permission(Permission.CREATE_PROPOSAL)),
    service: ProposalService = Depends(get_proposal_service),
):
    """Create a proposal with its venues and charge lines in one transaction"""
    proposal = service.create_proposal(data, current_user)
    return created_response(proposal_response(proposal))


@router.put("/{proposal_id}")
async def update_proposal(
    proposal_id: int,
    data: ProposalUpdate,
    current_user: User = Depends(require_permission(Permission.UPDATE_PROPOSAL)),
    service: ProposalService = Depends(get_proposal_service),
):
    proposal = service.update_proposal(proposal_id, data, current_user)
    return success_response(proposal_response(proposal, service.booking_count(proposal.id)))


@router.delete("/{proposal_id}")
async def delete_proposal(
    proposal_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_PROPOSAL)),
    service: ProposalService = Depends(get_proposal_service),
):
    service.delete_proposal(proposal_id, current_user)
    return success_response(message="Proposal deleted successfully")
