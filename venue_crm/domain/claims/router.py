"""Commission claim router"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...api_response import created_response, paginated_response, success_response
from ...auth import require_any_permission, require_permission
from ...database import get_db
from ...models import CommissionClaim, User
from ...permissions import Permission
from ...services.pdf_generator import ClaimInvoicePDFGenerator
from ...shared.money import quantize_money
from ...shared.schemas import SortOrder, user_summary
from .schemas import ClaimBookingSummary, ClaimCreate, ClaimResponse, ClaimStatus, ClaimUpdate
from .service import ClaimService, effective_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/claims", tags=["Commission Claims"])


def get_claim_service(db: Session = Depends(get_db)) -> ClaimService:
    """Dependency injection for ClaimService"""
    return ClaimService(db)


def claim_response(claim: CommissionClaim) -> ClaimResponse:
    booking = claim.booking
    status = effective_status(claim.status, claim.sent_date)
    return ClaimResponse(
        id=claim.id,
        bookingId=claim.booking_id,
        booking=ClaimBookingSummary(
            id=booking.id,
            status=booking.status,
            clientId=booking.client_id,
            clientName=booking.client.name if booking.client else None,
            venueId=booking.venue_id,
            venueName=booking.venue.name if booking.venue else None,
            commissionAmount=quantize_money(booking.commission_amount),
        )
        if booking
        else None,
        status=claim.status,
        effectiveStatus=status,
        isOverdue=status == ClaimStatus.OVERDUE.value,
        amount=quantize_money(claim.amount),
        sentDate=claim.sent_date,
        paidDate=claim.paid_date,
        invoiceNumber=claim.invoice_number,
        notes=claim.notes,
        createdBy=claim.created_by,
        createdByUser=user_summary(claim.created_by_user),
        createdAt=claim.created_at,
        updatedAt=claim.updated_at,
    )


@router.get("")
async def list_claims(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    status: Optional[ClaimStatus] = Query(None),
    booking_id: Optional[int] = Query(None, alias="bookingId"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(None, alias="sortOrder"),
    current_user: User = Depends(require_permission(Permission.VIEW_COMMISSION_CLAIM)),
    service: ClaimService = Depends(get_claim_service),
):
    """List claims; the status filter matches the effective (overdue-aware) status"""
    result = service.list_claims(
        current_user,
        page,
        limit,
        status.value if status else None,
        booking_id,
        search,
        sort_by,
        sort_order,
    )
    result["data"] = [claim_response(c) for c in result["data"]]
    return paginated_response(result)


@router.get("/{claim_id}")
async def get_claim(
    claim_id: int,
    current_user: User = Depends(require_permission(Permission.VIEW_COMMISSION_CLAIM)),
    service: ClaimService = Depends(get_claim_service),
):
    claim = service.get_claim(claim_id, current_user)
    return success_response(claim_response(claim))


@router.post("", status_code=201)
async def create_claim(
    data: ClaimCreate,
    current_user: User = Depends(require_permission(Permission.CREATE_COMMISSION_CLAIM)),
    service: ClaimService = Depends(get_claim_service),
):
    claim = service.create_claim(data, current_user)
    return created_response(claim_response(claim))


@router.put("/{claim_id}")
async def update_claim(
    claim_id: int,
    data: ClaimUpdate,
    current_user: User = Depends(require_permission(Permission.UPDATE_COMMISSION_CLAIM)),
    service: ClaimService = Depends(get_claim_service),
):
    claim = service.update_claim(claim_id, data, current_user)
    return success_response(claim_response(claim))


@router.get("/{claim_id}/invoice")
async def download_claim_invoice(
    claim_id: int,
    current_user: User = Depends(
        require_any_permission([Permission.VIEW_COMMISSION_CLAIM, Permission.EXPORT_DATA])
    ),
    service: ClaimService = Depends(get_claim_service),
):
    """Commission invoice PDF addressed to the venue"""
    claim = service.get_claim(claim_id, current_user)
    pdf_bytes = ClaimInvoicePDFGenerator(claim).generate()
    filename = claim.invoice_number or f"claim-{claim.id}"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename={filename}.pdf"},
    )


@router.delete("/{claim_id}")
async def delete_claim(
    claim_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_COMMISSION_CLAIM)),
    service: ClaimService = Depends(get_claim_service),
):
    service.delete_claim(claim_id, current_user)
    return success_response(message="Commission claim deleted successfully")
