"""Commission claim repository - Database operations for claims"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, CommissionClaim
from ...shared.pagination import Pagination, build_search_filter, paginate_query

SORT_FIELDS = {
    "amount": CommissionClaim.amount,
    "status": CommissionClaim.status,
    "sentDate": CommissionClaim.sent_date,
    "paidDate": CommissionClaim.paid_date,
    "invoiceNumber": CommissionClaim.invoice_number,
    "createdAt": CommissionClaim.created_at,
    "updatedAt": CommissionClaim.updated_at,
}

SEARCH_COLUMNS = [CommissionClaim.invoice_number, CommissionClaim.notes]


def _with_relations(query):
    return query.options(
        joinedload(CommissionClaim.booking).joinedload(Booking.client),
        joinedload(CommissionClaim.booking).joinedload(Booking.venue),
        joinedload(CommissionClaim.created_by_user),
    )


def overdue_clause(overdue_before: date):
    """Claims that are overdue, stored or derived from an old sent date"""
    return or_(
        CommissionClaim.status == "overdue",
        and_(CommissionClaim.status == "sent", CommissionClaim.sent_date < overdue_before),
    )


def status_clause(status: str, overdue_before: date):
    """Filter on the effective status rather than the stored one"""
    if status == "overdue":
        return overdue_clause(overdue_before)
    if status == "sent":
        return and_(
            CommissionClaim.status == "sent",
            or_(CommissionClaim.sent_date.is_(None), CommissionClaim.sent_date >= overdue_before),
        )
    return CommissionClaim.status == status


class ClaimRepository:
    @staticmethod
    def list_claims(
        db: Session,
        pagination: Pagination,
        order_by,
        overdue_before: date,
        owner_id: Optional[int] = None,
        status: Optional[str] = None,
        booking_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[CommissionClaim], int]:
        query = _with_relations(db.query(CommissionClaim))

        if owner_id is not None:
            query = query.filter(CommissionClaim.created_by == owner_id)
        if status:
            query = query.filter(status_clause(status, overdue_before))
        if booking_id is not None:
            query = query.filter(CommissionClaim.booking_id == booking_id)

        search_filter = build_search_filter(SEARCH_COLUMNS, search)
        if search_filter is not None:
            query = query.filter(search_filter)

        return paginate_query(query, pagination, order_by)

    @staticmethod
    def get_claim_by_id(db: Session, claim_id: int) -> Optional[CommissionClaim]:
        return _with_relations(db.query(CommissionClaim)).filter(CommissionClaim.id == claim_id).first()

    @staticmethod
    def count_for_booking(db: Session, booking_id: int) -> int:
        return (
            db.query(func.count(CommissionClaim.id))
            .filter(CommissionClaim.booking_id == booking_id)
            .scalar()
            or 0
        )

    @staticmethod
    def invoice_number_exists(db: Session, invoice_number: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(CommissionClaim.id).filter(CommissionClaim.invoice_number == invoice_number)
        if exclude_id is not None:
            query = query.filter(CommissionClaim.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def add_claim(db: Session, claim: CommissionClaim) -> CommissionClaim:
        db.add(claim)
        db.flush()
        return claim

    @staticmethod
    def delete_claim(db: Session, claim: CommissionClaim) -> None:
        db.delete(claim)
        db.flush()
