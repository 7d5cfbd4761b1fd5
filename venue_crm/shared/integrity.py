"""
Deletion-integrity guards.

These run before a delete so the caller gets a readable 409 instead of a raw
constraint error. Callers run the check and the delete in the same
``unit_of_work``; the RESTRICT foreign keys stay the source of truth.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Booking, Proposal, ProposalVenue


@dataclass(frozen=True)
class DeleteCheck:
    can_delete: bool
    reason: Optional[str] = None


def _count(db: Session, column, value: int) -> int:
    return db.query(func.count(column)).filter(column == value).scalar() or 0


def can_delete_client(db: Session, client_id: int) -> DeleteCheck:
    proposal_count = _count(db, Proposal.client_id, client_id)
    booking_count = _count(db, Booking.client_id, client_id)

    if proposal_count > 0 or booking_count > 0:
        return DeleteCheck(
            False, f"Client has {proposal_count} proposal(s) and {booking_count} booking(s)"
        )
    return DeleteCheck(True)


def can_delete_venue(db: Session, venue_id: int) -> DeleteCheck:
    proposal_venue_count = _count(db, ProposalVenue.venue_id, venue_id)
    booking_count = _count(db, Booking.venue_id, venue_id)

    if proposal_venue_count > 0 or booking_count > 0:
        return DeleteCheck(
            False, f"Venue has {proposal_venue_count} proposal(s) and {booking_count} booking(s)"
        )
    return DeleteCheck(True)


def can_delete_proposal(db: Session, proposal_id: int) -> DeleteCheck:
    booking_count = _count(db, Booking.proposal_id, proposal_id)

    if booking_count > 0:
        return DeleteCheck(False, f"Proposal has {booking_count} booking(s)")
    return DeleteCheck(True)
