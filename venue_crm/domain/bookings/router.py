"""Booking router - FastAPI endpoints for bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...api_response import created_response, paginated_response, success_response
from ...auth import require_any_permission, require_permission
from ...database import get_db
from ...models import Booking, User
from ...permissions import Permission
from ...services.pdf_generator import BookingConfirmationPDFGenerator
from ...shared.money import quantize_money
from ...shared.schemas import SortOrder, user_summary
from .schemas import (
    BookingCreate,
    BookingDocument,
    BookingPartySummary,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdate,
)
from .service import BookingService
from .workflow import BookingStatus, allowed_next, is_option_expired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def booking_response(booking: Booking) -> BookingResponse:
    client, venue = booking.client, booking.venue
    return BookingResponse(
        id=booking.id,
        proposalId=booking.proposal_id,
        clientId=booking.client_id,
        client=BookingPartySummary(id=client.id, name=client.name, detail=client.company) if client else None,
        venueId=booking.venue_id,
        venue=BookingPartySummary(id=venue.id, name=venue.name, detail=venue.location) if venue else None,
        status=booking.status,
        allowedTransitions=allowed_next(booking.status),
        optionExpiry=booking.option_expiry,
        isOptionExpired=is_option_expired(booking.status, booking.option_expiry),
        totalValue=quantize_money(booking.total_value),
        commissionAmount=quantize_money(booking.commission_amount),
        documents=[BookingDocument(**document) for document in (booking.documents or [])],
        claimCount=len(booking.claims),
        notes=booking.notes,
        createdBy=booking.created_by,
        createdByUser=user_summary(booking.created_by_user),
        createdAt=booking.created_at,
        updatedAt=booking.updated_at,
    )


@router.get("")
async def list_bookings(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    status: Optional[BookingStatus] = Query(None),
    client_id: Optional[int] = Query(None, alias="clientId"),
    venue_id: Optional[int] = Query(None, alias="venueId"),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(None, alias="sortOrder"),
    current_user: User = Depends(require_permission(Permission.VIEW_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings with status/client/venue filters"""
    result = service.list_bookings(
        current_user,
        page,
        limit,
        status.value if status else None,
        client_id,
        venue_id,
        search,
        sort_by,
        sort_order,
    )
    result["data"] = [booking_response(b) for b in result["data"]]
    return paginated_response(result)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    current_user: User = Depends(require_permission(Permission.VIEW_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id, current_user)
    return success_response(booking_response(booking))


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(require_permission(Permission.CREATE_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    """Convert a proposal venue into a booking"""
    booking = service.create_booking(data, current_user)
    return created_response(booking_response(booking))


@router.put("/{booking_id}")
async def update_booking(
    booking_id: int,
    data: BookingUpdate,
    current_user: User = Depends(require_permission(Permission.UPDATE_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_booking(booking_id, data, current_user)
    return success_response(booking_response(booking))


@router.put("/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    current_user: User = Depends(require_permission(Permission.UPDATE_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    """Move the booking one step along the workflow"""
    booking = service.change_status(booking_id, data, current_user)
    return success_response(booking_response(booking))


@router.post("/{booking_id}/documents", status_code=201)
async def upload_booking_document(
    booking_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(require_permission(Permission.UPDATE_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    """Upload a signed document (PDF, PNG, JPEG, DOC, DOCX) for the booking"""
    logger.info(f"📤 Uploading document {file.filename!r} for booking {booking_id}")
    contents = await file.read()
    document = service.add_document(booking_id, current_user, file.filename, file.content_type, contents)
    return created_response(BookingDocument(**document))


@router.get("/{booking_id}/confirmation")
async def download_booking_confirmation(
    booking_id: int,
    current_user: User = Depends(
        require_any_permission([Permission.VIEW_BOOKING, Permission.EXPORT_DATA])
    ),
    service: BookingService = Depends(get_booking_service),
):
    """Booking confirmation PDF for confirmed or completed bookings"""
    booking = service.get_confirmable_booking(booking_id, current_user)
    pdf_bytes = BookingConfirmationPDFGenerator(booking).generate()
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=booking-{booking.id}-confirmation.pdf"},
    )


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_BOOKING)),
    service: BookingService = Depends(get_booking_service),
):
    service.delete_booking(booking_id, current_user)
    return success_response(message="Booking deleted successfully")
