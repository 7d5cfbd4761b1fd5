"""Booking service - Proposal conversion, status workflow and signed documents"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ... import storage
from ...auth import ensure_resource_access
from ...config import MAX_DOCUMENT_SIZE
from ...database import unit_of_work
from ...errors import bad_request, conflict, not_found, payload_too_large, validation_error
from ...models import Booking, User
from ...permissions import Permission, has_permission
from ...shared.pagination import apply_pagination, create_paginated_result, resolve_sort
from ...shared.validators import validate_filename
from ..proposals.repository import ProposalRepository
from .repository import SORT_FIELDS, BookingRepository
from .schemas import BookingCreate, BookingStatusUpdate, BookingUpdate
from .workflow import BookingStatus, check_transition

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_TYPES = {
    "application/pdf": (".pdf",),
    "image/png": (".png",),
    "image/jpeg": (".jpg", ".jpeg"),
    "application/msword": (".doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
}
ALLOWED_DOCUMENT_EXTENSIONS = tuple(ext for exts in ALLOWED_DOCUMENT_TYPES.values() for ext in exts)

CONFIRMATION_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


class BookingService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.proposal_repo = ProposalRepository()

    def list_bookings(
        self,
        user: User,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        venue_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        pagination = apply_pagination(page, limit, default_limit=20)
        owner_id = None if has_permission(user, Permission.VIEW_ALL_BOOKINGS) else user.id

        bookings, total = self.repo.list_bookings(
            self.db,
            pagination,
            resolve_sort(SORT_FIELDS, sort_by, sort_order),
            owner_id=owner_id,
            status=status,
            client_id=client_id,
            venue_id=venue_id,
            search=search,
        )
        return create_paginated_result(bookings, total, pagination.page, pagination.limit)

    def get_booking(self, booking_id: int, user: User) -> Booking:
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise not_found("Booking not found")
        ensure_resource_access(user, booking.created_by)
        return booking

    def create_booking(self, data: BookingCreate, user: User) -> Booking:
        """
        Convert a proposal venue into a booking.

        Client, value and commission are copied from the proposal venue. The
        booking starts at proposal_sent when the proposal was sent, else draft.
        """
        proposal = self.proposal_repo.get_proposal_by_id(self.db, data.proposalId)
        if not proposal:
            raise validation_error(f"Proposal {data.proposalId} not found", field="proposalId")
        ensure_resource_access(user, proposal.created_by)

        with unit_of_work(self.db):
            proposal_venue = self.proposal_repo.get_proposal_venue(self.db, proposal.id, data.venueId)
            if not proposal_venue:
                raise validation_error("Venue is not part of this proposal", field="venueId")

            if self.repo.find_for_proposal_venue(self.db, proposal.id, data.venueId):
                raise conflict(
                    "A booking already exists for this venue on this proposal",
                    field="venueId",
                    details={"proposalId": proposal.id, "venueId": data.venueId},
                )

            status = BookingStatus.PROPOSAL_SENT if proposal.status == "sent" else BookingStatus.DRAFT
            booking = Booking(
                proposal_id=proposal.id,
                client_id=proposal.client_id,
                venue_id=data.venueId,
                status=status.value,
                option_expiry=data.optionExpiry,
                total_value=proposal_venue.total_value,
                commission_amount=proposal_venue.expected_commission,
                documents=[],
                notes=data.notes,
                created_by=user.id,
            )
            self.repo.add_booking(self.db, booking)

        logger.info(f"✅ Booking created: {booking.id} from proposal {proposal.id} (status {status.value})")
        return self.repo.get_booking_by_id(self.db, booking.id)

    def update_booking(self, booking_id: int, data: BookingUpdate, user: User) -> Booking:
        booking = self.get_booking(booking_id, user)
        fields = data.model_fields_set

        if (
            "optionExpiry" in fields
            and data.optionExpiry is None
            and booking.status == BookingStatus.OPTION.value
        ):
            raise validation_error("A booking on option must keep its expiry date", field="optionExpiry")

        with unit_of_work(self.db):
            if "optionExpiry" in fields:
                booking.option_expiry = data.optionExpiry
            if "totalValue" in fields:
                booking.total_value = data.totalValue
            if "commissionAmount" in fields:
                booking.commission_amount = data.commissionAmount
            if "notes" in fields:
                booking.notes = data.notes

        logger.info(f"✅ Booking updated: {booking.id} by user {user.id}")
        return self.repo.get_booking_by_id(self.db, booking.id)

    def change_status(self, booking_id: int, data: BookingStatusUpdate, user: User) -> Booking:
        """
        Advance the workflow one step.

        Re-submitting the current status keeps the status but still applies
        any ``optionExpiry`` or ``notes`` sent with it.
        """
        booking = self.get_booking(booking_id, user)
        current = booking.status
        target = data.status.value
        option_expiry = data.optionExpiry if data.optionExpiry is not None else booking.option_expiry

        moved = check_transition(current, target, option_expiry)

        with unit_of_work(self.db):
            booking.status = target
            booking.option_expiry = option_expiry
            if "notes" in data.model_fields_set:
                booking.notes = data.notes

        if moved:
            logger.info(f"🔄 Booking {booking.id} moved {current} -> {target} by user {user.id}")
        else:
            logger.info(f"ℹ️ Booking {booking.id} already {current}, status unchanged")
        return self.repo.get_booking_by_id(self.db, booking.id)

    def delete_booking(self, booking_id: int, user: User) -> None:
        """Delete a booking together with its commission claims"""
        booking = self.get_booking(booking_id, user)
        claim_count = len(booking.claims)

        with unit_of_work(self.db):
            self.repo.delete_booking(self.db, booking)

        logger.info(f"🗑️ Booking deleted: {booking_id} ({claim_count} claim(s)) by user {user.id}")

    def add_document(
        self, booking_id: int, user: User, filename: Optional[str], content_type: Optional[str], contents: bytes
    ) -> dict:
        """Store a signed document and attach its reference to the booking"""
        booking = self.get_booking(booking_id, user)

        try:
            filename = validate_filename(filename, ALLOWED_DOCUMENT_EXTENSIONS)
        except ValueError as e:
            logger.warning(f"❌ Rejected document filename {filename!r}: {e}")
            raise bad_request(str(e), field="file") from e

        if content_type not in ALLOWED_DOCUMENT_TYPES:
            raise bad_request(
                "Invalid file type. Only PDF, PNG, JPEG, DOC and DOCX files are allowed.", field="file"
            )
        if not filename.lower().endswith(ALLOWED_DOCUMENT_TYPES[content_type]):
            raise bad_request("File extension does not match its content type", field="file")

        if len(contents) > MAX_DOCUMENT_SIZE:
            raise payload_too_large(
                f"File size exceeds {MAX_DOCUMENT_SIZE / (1024 * 1024):g}MB limit",
                details={"size": len(contents), "maxSize": MAX_DOCUMENT_SIZE},
            )
        if not contents:
            raise bad_request("Uploaded file is empty", field="file")

        key = f"bookings/{booking.id}/{uuid.uuid4()}-{filename}"
        storage.upload_document(key, contents, content_type, filename)

        document = {
            "id": uuid.uuid4().hex,
            "filename": filename,
            "key": key,
            "contentType": content_type,
            "size": len(contents),
            "uploadedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        with unit_of_work(self.db):
            # New list so the JSON column is flagged dirty
            booking.documents = [*(booking.documents or []), document]

        logger.info(f"📎 Document {filename} attached to booking {booking.id}")
        return {**document, "url": storage.generate_presigned_url(key)}

    def get_confirmable_booking(self, booking_id: int, user: User) -> Booking:
        booking = self.get_booking(booking_id, user)
        if booking.status not in CONFIRMATION_STATUSES:
            raise conflict(
                "A confirmation can only be issued for confirmed or completed bookings",
                field="status",
                details={"status": booking.status},
            )
        return booking
