"""Proposal repository - Database operations for proposals and their venues"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Booking, Client, Proposal, ProposalVenue
from ...shared.pagination import Pagination, build_search_filter, paginate_query

SORT_FIELDS = {
    "status": Proposal.status,
    "totalValue": Proposal.total_value,
    "expectedCommission": Proposal.expected_commission,
    "createdAt": Proposal.created_at,
    "updatedAt": Proposal.updated_at,
}


def _with_relations(query):
    return query.options(
        joinedload(Proposal.client),
        joinedload(Proposal.created_by_user),
        selectinload(Proposal.venues).joinedload(ProposalVenue.venue),
    )


class ProposalRepository:
    @staticmethod
    def list_proposals(
        db: Session,
        pagination: Pagination,
        order_by,
        owner_id: Optional[int] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Proposal], int]:
        query = _with_relations(db.query(Proposal))

        if owner_id is not None:
            query = query.filter(Proposal.created_by == owner_id)
        if status:
            query = query.filter(Proposal.status == status)
        if client_id is not None:
            query = query.filter(Proposal.client_id == client_id)

        search_filter = build_search_filter([Client.name, Client.company, Proposal.notes], search)
        if search_filter is not None:
            query = query.join(Client, Proposal.client_id == Client.id).filter(search_filter)

        return paginate_query(query, pagination, order_by)

    @staticmethod
    def get_proposal_by_id(db: Session, proposal_id: int) -> Optional[Proposal]:
        return _with_relations(db.query(Proposal)).filter(Proposal.id == proposal_id).first()

    @staticmethod
    def get_proposal_venue(db: Session, proposal_id: int, venue_id: int) -> Optional[ProposalVenue]:
        return (
            db.query(ProposalVenue)
            .filter(ProposalVenue.proposal_id == proposal_id, ProposalVenue.venue_id == venue_id)
            .first()
        )

    @staticmethod
    def count_bookings(db: Session, proposal_ids: list[int]) -> dict[int, int]:
        counts = dict.fromkeys(proposal_ids, 0)
        if not proposal_ids:
            return counts
        for proposal_id, total in (
            db.query(Booking.proposal_id, func.count(Booking.id))
            .filter(Booking.proposal_id.in_(proposal_ids))
            .group_by(Booking.proposal_id)
        ):
            counts[proposal_id] = total
        return counts

    @staticmethod
    def booked_venue_ids(db: Session, proposal_id: int) -> set[int]:
        rows = db.query(Booking.venue_id).filter(Booking.proposal_id == proposal_id).distinct()
        return {venue_id for (venue_id,) in rows}

    @staticmethod
    def add_proposal(db: Session, proposal: Proposal) -> Proposal:
        db.add(proposal)
        db.flush()
        return proposal

    @staticmethod
    def delete_proposal(db: Session, proposal: Proposal) -> None:
        db.delete(proposal)
        db.flush()
