"""Commission claim service - Invoicing venues for booked commission"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ensure_resource_access
from ...config import CLAIM_PAYMENT_TERMS_DAYS
from ...database import unit_of_work
from ...errors import conflict, not_found, validation_error
from ...models import CommissionClaim, User
from ...permissions import Permission, has_permission
from ...shared.pagination import apply_pagination, create_paginated_result, resolve_sort
from ..bookings.repository import BookingRepository
from .repository import SORT_FIELDS, ClaimRepository
from .schemas import ClaimCreate, ClaimStatus, ClaimUpdate

logger = logging.getLogger(__name__)


def overdue_cutoff(today: Optional[date] = None) -> date:
    """Claims sent before this date are past their payment terms"""
    return (today or date.today()) - timedelta(days=CLAIM_PAYMENT_TERMS_DAYS)


def effective_status(status: str, sent_date: Optional[date], today: Optional[date] = None) -> str:
    """
    Status as shown to callers.

    A claim still marked ``sent`` whose sent date is older than the payment
    terms reads as ``overdue``; nothing rewrites the stored status.
    """
    if status == ClaimStatus.SENT.value and sent_date is not None and sent_date < overdue_cutoff(today):
        return ClaimStatus.OVERDUE.value
    return status


class ClaimService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ClaimRepository()
        self.booking_repo = BookingRepository()

    def list_claims(
        self,
        user: User,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        booking_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        pagination = apply_pagination(page, limit, default_limit=20)
        owner_id = None if has_permission(user, Permission.VIEW_ALL_COMMISSION_CLAIMS) else user.id

        claims, total = self.repo.list_claims(
            self.db,
            pagination,
            resolve_sort(SORT_FIELDS, sort_by, sort_order),
            overdue_before=overdue_cutoff(),
            owner_id=owner_id,
            status=status,
            booking_id=booking_id,
            search=search,
        )
        return create_paginated_result(claims, total, pagination.page, pagination.limit)

    def get_claim(self, claim_id: int, user: User) -> CommissionClaim:
        claim = self.repo.get_claim_by_id(self.db, claim_id)
        if not claim:
            raise not_found("Commission claim not found")
        ensure_resource_access(user, claim.created_by)
        return claim

    def generate_invoice_number(self, booking_id: int, today: Optional[date] = None) -> str:
        """INV-YYYYMMDD-<booking>-<n>, where n is the next free sequence for the booking"""
        prefix = f"INV-{(today or date.today()):%Y%m%d}-{booking_id}"
        sequence = self.repo.count_for_booking(self.db, booking_id) + 1
        while self.repo.invoice_number_exists(self.db, f"{prefix}-{sequence}"):
            sequence += 1
        return f"{prefix}-{sequence}"

    def _ensure_invoice_number_free(self, invoice_number: str, exclude_id: Optional[int] = None) -> None:
        if self.repo.invoice_number_exists(self.db, invoice_number, exclude_id):
            raise conflict(
                f"Invoice number {invoice_number} is already in use",
                field="invoiceNumber",
                details={"field": "invoiceNumber", "constraint": "unique"},
            )

    def create_claim(self, data: ClaimCreate, user: User) -> CommissionClaim:
        booking = self.booking_repo.get_booking_by_id(self.db, data.bookingId)
        if not booking:
            raise validation_error(f"Booking {data.bookingId} not found", field="bookingId")
        ensure_resource_access(user, booking.created_by)

        today = date.today()
        status = data.status.value
        sent_date = data.sentDate
        paid_date = data.paidDate
        if status in (ClaimStatus.SENT.value, ClaimStatus.PAID.value) and sent_date is None:
            sent_date = today
        if status == ClaimStatus.PAID.value and paid_date is None:
            paid_date = today

        with unit_of_work(self.db):
            if data.invoiceNumber:
                self._ensure_invoice_number_free(data.invoiceNumber)
                invoice_number = data.invoiceNumber
            else:
                invoice_number = self.generate_invoice_number(booking.id, today)

            claim = CommissionClaim(
                booking_id=booking.id,
                status=status,
                amount=data.amount if data.amount is not None else booking.commission_amount,
                sent_date=sent_date,
                paid_date=paid_date,
                invoice_number=invoice_number,
                notes=data.notes,
                created_by=user.id,
            )
            self.repo.add_claim(self.db, claim)

        logger.info(f"✅ Commission claim created: {claim.id} ({invoice_number}) for booking {booking.id}")
        return self.repo.get_claim_by_id(self.db, claim.id)

    def update_claim(self, claim_id: int, data: ClaimUpdate, user: User) -> CommissionClaim:
        """
        Update a claim.

        Moving to ``sent`` stamps the sent date when it is still empty; moving
        to ``paid`` stamps the paid date, and leaving ``paid`` clears it unless
        a paid date is sent.
        """
        claim = self.get_claim(claim_id, user)
        fields = data.model_fields_set
        today = date.today()
        previous_status = claim.status

        with unit_of_work(self.db):
            if "invoiceNumber" in fields:
                if data.invoiceNumber:
                    self._ensure_invoice_number_free(data.invoiceNumber, exclude_id=claim.id)
                    claim.invoice_number = data.invoiceNumber
                else:
                    claim.invoice_number = self.generate_invoice_number(claim.booking_id, today)
            if "amount" in fields:
                claim.amount = data.amount
            if "sentDate" in fields:
                claim.sent_date = data.sentDate
            if "paidDate" in fields:
                claim.paid_date = data.paidDate
            if "notes" in fields:
                claim.notes = data.notes

            if "status" in fields:
                claim.status = data.status.value
                if claim.status in (ClaimStatus.SENT.value, ClaimStatus.PAID.value) and claim.sent_date is None:
                    claim.sent_date = today
                if "paidDate" not in fields:
                    if claim.status == ClaimStatus.PAID.value:
                        claim.paid_date = claim.paid_date or today
                    else:
                        # A claim that is no longer paid has no payment date
                        claim.paid_date = None

        if claim.status != previous_status:
            logger.info(f"🔄 Claim {claim.id} moved {previous_status} -> {claim.status} by user {user.id}")
        logger.info(f"✅ Commission claim updated: {claim.id} by user {user.id}")
        return self.repo.get_claim_by_id(self.db, claim.id)

    def delete_claim(self, claim_id: int, user: User) -> None:
        claim = self.get_claim(claim_id, user)

        with unit_of_work(self.db):
            self.repo.delete_claim(self.db, claim)

        logger.info(f"🗑️ Commission claim deleted: {claim_id} by user {user.id}")
