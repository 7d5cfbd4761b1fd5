"""Venue repository - Database operations for venues"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, ProposalVenue, Venue
from ...shared.pagination import Pagination, build_search_filter, paginate_query

SORT_FIELDS = {
    "name": Venue.name,
    "location": Venue.location,
    "standardCommission": Venue.standard_commission,
    "createdAt": Venue.created_at,
    "updatedAt": Venue.updated_at,
}

SEARCH_COLUMNS = [Venue.name, Venue.location, Venue.contact_name, Venue.email]


class VenueRepository:
    """Repository for venue database operations"""

    @staticmethod
    def list_venues(
        db: Session,
        pagination: Pagination,
        order_by,
        owner_id: Optional[int] = None,
        search: Optional[str] = None,
        location: Optional[str] = None,
    ) -> tuple[list[Venue], int]:
        query = db.query(Venue).options(joinedload(Venue.created_by_user))

        if owner_id is not None:
            query = query.filter(Venue.created_by == owner_id)

        search_filter = build_search_filter(SEARCH_COLUMNS, search)
        if search_filter is not None:
            query = query.filter(search_filter)

        location_filter = build_search_filter([Venue.location], location)
        if location_filter is not None:
            query = query.filter(location_filter)

        return paginate_query(query, pagination, order_by)

    @staticmethod
    def get_venue_by_id(db: Session, venue_id: int) -> Optional[Venue]:
        return (
            db.query(Venue)
            .options(joinedload(Venue.created_by_user))
            .filter(Venue.id == venue_id)
            .first()
        )

    @staticmethod
    def get_venues_by_ids(db: Session, venue_ids: list[int]) -> dict[int, Venue]:
        if not venue_ids:
            return {}
        return {v.id: v for v in db.query(Venue).filter(Venue.id.in_(venue_ids))}

    @staticmethod
    def count_related(db: Session, venue_ids: list[int]) -> dict[int, dict[str, int]]:
        """Proposal-venue and booking counts per venue"""
        counts = {venue_id: {"proposals": 0, "bookings": 0} for venue_id in venue_ids}
        if not venue_ids:
            return counts

        for venue_id, total in (
            db.query(ProposalVenue.venue_id, func.count(ProposalVenue.id))
            .filter(ProposalVenue.venue_id.in_(venue_ids))
            .group_by(ProposalVenue.venue_id)
        ):
            counts[venue_id]["proposals"] = total

        for venue_id, total in (
            db.query(Booking.venue_id, func.count(Booking.id))
            .filter(Booking.venue_id.in_(venue_ids))
            .group_by(Booking.venue_id)
        ):
            counts[venue_id]["bookings"] = total

        return counts

    @staticmethod
    def create_venue(db: Session, created_by: int, **venue_data) -> Venue:
        venue = Venue(created_by=created_by, **venue_data)
        db.add(venue)
        db.flush()
        return venue

    @staticmethod
    def update_venue(db: Session, venue: Venue, **updates) -> Venue:
        for key, value in updates.items():
            setattr(venue, key, value)
        db.flush()
        return venue

    @staticmethod
    def delete_venue(db: Session, venue: Venue) -> None:
        db.delete(venue)
        db.flush()
