"""Proposal service - Business logic for proposals, their venues and pricing"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ensure_resource_access
from ...database import unit_of_work
from ...errors import conflict, not_found, validation_error
from ...models import Client, Proposal, ProposalVenue, User, Venue
from ...permissions import Permission, has_permission
from ...shared.integrity import can_delete_proposal
from ...shared.money import MAX_MONEY
from ...shared.pagination import apply_pagination, create_paginated_result, resolve_sort
from ..venues.repository import VenueRepository
from .calculations import price_charge_lines, price_venue, summarise_proposal
from .repository import SORT_FIELDS, ProposalRepository
from .schemas import ProposalCreate, ProposalUpdate, ProposalVenueInput

logger = logging.getLogger(__name__)


class ProposalService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProposalRepository()
        self.venue_repo = VenueRepository()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_proposals(
        self,
        user: User,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        pagination = apply_pagination(page, limit, default_limit=20)
        owner_id = None if has_permission(user, Permission.VIEW_ALL_PROPOSALS) else user.id

        proposals, total = self.repo.list_proposals(
            self.db,
            pagination,
            resolve_sort(SORT_FIELDS, sort_by, sort_order),
            owner_id=owner_id,
            status=status,
            client_id=client_id,
            search=search,
        )
        result = create_paginated_result(proposals, total, pagination.page, pagination.limit)
        result["bookingCounts"] = self.repo.count_bookings(self.db, [p.id for p in proposals])
        return result

    def get_proposal(self, proposal_id: int, user: User) -> Proposal:
        proposal = self.repo.get_proposal_by_id(self.db, proposal_id)
        if not proposal:
            raise not_found("Proposal not found")
        ensure_resource_access(user, proposal.created_by)
        return proposal

    def booking_count(self, proposal_id: int) -> int:
        return self.repo.count_bookings(self.db, [proposal_id])[proposal_id]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_proposal(self, data: ProposalCreate, user: User) -> Proposal:
        logger.info(f"📥 Creating proposal for client {data.clientId} by user {user.id}")
        client = self._get_client_for(data.clientId, user)
        venues = self._load_venues(data.venues, user)

        with unit_of_work(self.db):
            proposal = Proposal(
                client_id=client.id,
                status=data.status,
                notes=data.notes,
                created_by=user.id,
            )
            proposal.venues = [self._build_venue_row(item, venues[item.venueId]) for item in data.venues]
            self._apply_totals(proposal)
            self.repo.add_proposal(self.db, proposal)

        logger.info(
            f"✅ Proposal created: {proposal.id} ({len(data.venues)} venue(s), total {proposal.total_value})"
        )
        return self.repo.get_proposal_by_id(self.db, proposal.id)

    def update_proposal(self, proposal_id: int, data: ProposalUpdate, user: User) -> Proposal:
        """Apply a partial update and reprice every venue on the proposal"""
        proposal = self.get_proposal(proposal_id, user)
        fields = data.model_fields_set

        client = self._get_client_for(data.clientId, user) if "clientId" in fields else None
        venues = (
            self._load_venues(data.venues, user, frozenset(row.venue_id for row in proposal.venues))
            if "venues" in fields
            else {}
        )

        with unit_of_work(self.db):
            if client is not None:
                if client.id != proposal.client_id and self.booking_count(proposal.id):
                    raise conflict("Cannot change the client of a proposal that has bookings")
                proposal.client_id = client.id
            if "status" in fields:
                proposal.status = data.status
            if "notes" in fields:
                proposal.notes = data.notes

            if "venues" in fields:
                self._replace_venues(proposal, data.venues, venues)
            else:
                self._reprice_venues(proposal)

            self._apply_totals(proposal)
            self.db.flush()

        logger.info(f"✅ Proposal updated: {proposal.id} by user {user.id}")
        return self.repo.get_proposal_by_id(self.db, proposal.id)

    def delete_proposal(self, proposal_id: int, user: User) -> None:
        proposal = self.get_proposal(proposal_id, user)

        with unit_of_work(self.db, isolation_level="SERIALIZABLE"):
            check = can_delete_proposal(self.db, proposal.id)
            if not check.can_delete:
                logger.warning(f"⚠️ Refusing to delete proposal {proposal.id}: {check.reason}")
                raise conflict(f"Cannot delete proposal: {check.reason}")
            self.repo.delete_proposal(self.db, proposal)

        logger.info(f"🗑️ Proposal deleted: {proposal_id} by user {user.id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_client_for(self, client_id: int, user: User) -> Client:
        client = self.db.query(Client).filter(Client.id == client_id).first()
        if not client:
            raise validation_error(f"Client {client_id} not found", field="clientId")
        ensure_resource_access(user, client.created_by)
        return client

    def _load_venues(
        self, items: list[ProposalVenueInput], user: User, attached: frozenset = frozenset()
    ) -> dict[int, Venue]:
        """
        Look up the listed venues.

        Newly added venues must be visible to ``user``; venues already on the
        proposal stay usable.
        """
        venue_ids = [item.venueId for item in items]
        venues = self.venue_repo.get_venues_by_ids(self.db, venue_ids)
        missing = [venue_id for venue_id in venue_ids if venue_id not in venues]
        if missing:
            raise validation_error(
                f"Venue {missing[0]} not found", field="venues", details={"missingVenueIds": missing}
            )
        for venue_id, venue in venues.items():
            if venue_id not in attached:
                ensure_resource_access(user, venue.created_by)
        return venues

    @staticmethod
    def _charge_line_dicts(item: ProposalVenueInput) -> list[dict]:
        return [line.model_dump() for line in item.chargeLines]

    def _build_venue_row(self, item: ProposalVenueInput, venue: Venue) -> ProposalVenue:
        row = ProposalVenue(venue=venue)
        self._fill_venue_row(row, item, venue)
        return row

    @staticmethod
    def _fill_venue_row(row: ProposalVenue, item: ProposalVenueInput, venue: Venue) -> None:
        lines = price_charge_lines(ProposalService._charge_line_dicts(item))
        pricing = price_venue(lines, item.commissionRate, venue.standard_commission)
        # Reassign so the JSON column is flagged dirty
        row.charge_lines = lines
        row.commission_rate = item.commissionRate
        row.total_value = pricing.total_value
        row.expected_commission = pricing.expected_commission
        row.notes = item.notes

    def _replace_venues(
        self, proposal: Proposal, items: list[ProposalVenueInput], venues: dict[int, Venue]
    ) -> None:
        """Upsert venue rows by venue id; venues that are no longer listed are removed"""
        wanted = {item.venueId for item in items}
        removed = {row.venue_id for row in proposal.venues} - wanted
        booked = self.repo.booked_venue_ids(self.db, proposal.id) & removed
        if booked:
            raise conflict(
                "Cannot remove venues that already have bookings from this proposal",
                field="venues",
                details={"bookedVenueIds": sorted(booked)},
            )

        existing = {row.venue_id: row for row in proposal.venues}
        rows = []
        for item in items:
            row = existing.get(item.venueId)
            if row is None:
                rows.append(self._build_venue_row(item, venues[item.venueId]))
            else:
                self._fill_venue_row(row, item, venues[item.venueId])
                rows.append(row)
        proposal.venues = rows

    @staticmethod
    def _reprice_venues(proposal: Proposal) -> None:
        """Recompute stored totals from the charge lines and current venue rates"""
        for row in proposal.venues:
            lines = price_charge_lines(row.charge_lines or [])
            pricing = price_venue(lines, row.commission_rate, row.venue.standard_commission)
            row.charge_lines = lines
            row.total_value = pricing.total_value
            row.expected_commission = pricing.expected_commission

    @staticmethod
    def _apply_totals(proposal: Proposal) -> None:
        # Venue rows carry their own priced totals
        summary = summarise_proposal(proposal.venues)
        # Amounts are non-negative, so every line and venue total is bounded by the proposal total
        if max(summary.total_value, summary.expected_commission) > MAX_MONEY:
            raise validation_error(
                "Proposal total exceeds the largest supported amount",
                field="venues",
                details={"totalValue": str(summary.total_value), "maxValue": str(MAX_MONEY)},
            )
        proposal.total_value = summary.total_value
        proposal.expected_commission = summary.expected_commission
