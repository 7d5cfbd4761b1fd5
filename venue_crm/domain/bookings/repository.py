"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Booking, Client, Venue
from ...shared.pagination import Pagination, paginate_query

SORT_FIELDS = {
    "status": Booking.status,
    "optionExpiry": Booking.option_expiry,
    "totalValue": Booking.total_value,
    "commissionAmount": Booking.commission_amount,
    "createdAt": Booking.created_at,
    "updatedAt": Booking.updated_at,
}


def _with_relations(query):
    return query.options(
        joinedload(Booking.client),
        joinedload(Booking.venue),
        joinedload(Booking.created_by_user),
        selectinload(Booking.claims),
    )


class BookingRepository:
    @staticmethod
    def list_bookings(
        db: Session,
        pagination: Pagination,
        order_by,
        owner_id: Optional[int] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        venue_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Booking], int]:
        query = _with_relations(db.query(Booking))

        if owner_id is not None:
            query = query.filter(Booking.created_by == owner_id)
        if status:
            query = query.filter(Booking.status == status)
        if client_id is not None:
            query = query.filter(Booking.client_id == client_id)
        if venue_id is not None:
            query = query.filter(Booking.venue_id == venue_id)

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            client_ids = select(Client.id).where(
                or_(Client.name.ilike(pattern), Client.company.ilike(pattern))
            )
            venue_ids = select(Venue.id).where(
                or_(Venue.name.ilike(pattern), Venue.location.ilike(pattern))
            )
            query = query.filter(
                or_(
                    Booking.client_id.in_(client_ids),
                    Booking.venue_id.in_(venue_ids),
                    Booking.notes.ilike(pattern),
                )
            )

        return paginate_query(query, pagination, order_by)

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return _with_relations(db.query(Booking)).filter(Booking.id == booking_id).first()

    @staticmethod
    def find_for_proposal_venue(db: Session, proposal_id: int, venue_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.proposal_id == proposal_id, Booking.venue_id == venue_id)
            .first()
        )

    @staticmethod
    def add_booking(db: Session, booking: Booking) -> Booking:
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def delete_booking(db: Session, booking: Booking) -> None:
        db.delete(booking)
        db.flush()
