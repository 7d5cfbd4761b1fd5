"""Venue service - Business logic for venue operations"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ensure_resource_access
from ...database import unit_of_work
from ...errors import conflict, not_found
from ...models import User, Venue
from ...permissions import Permission, has_permission
from ...shared.integrity import can_delete_venue
from ...shared.pagination import apply_pagination, create_paginated_result, resolve_sort
from .repository import SORT_FIELDS, VenueRepository
from .schemas import VenueCreate, VenueUpdate

logger = logging.getLogger(__name__)

FIELD_MAP = {
    "name": "name",
    "location": "location",
    "contactName": "contact_name",
    "email": "email",
    "phone": "phone",
    "standardCommission": "standard_commission",
    "notes": "notes",
}


class VenueService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = VenueRepository()

    def list_venues(
        self,
        user: User,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        location: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        pagination = apply_pagination(page, limit, default_limit=20)
        owner_id = None if has_permission(user, Permission.VIEW_ALL_VENUES) else user.id

        venues, total = self.repo.list_venues(
            self.db,
            pagination,
            resolve_sort(SORT_FIELDS, sort_by, sort_order),
            owner_id=owner_id,
            search=search,
            location=location,
        )
        result = create_paginated_result(venues, total, pagination.page, pagination.limit)
        result["counts"] = self.repo.count_related(self.db, [v.id for v in venues])
        return result

    def get_venue(self, venue_id: int, user: User) -> Venue:
        venue = self.repo.get_venue_by_id(self.db, venue_id)
        if not venue:
            raise not_found("Venue not found")
        ensure_resource_access(user, venue.created_by)
        return venue

    def create_venue(self, data: VenueCreate, user: User) -> Venue:
        logger.info(f"📥 Creating venue for user_id: {user.id}")
        venue_data = {column: getattr(data, field) for field, column in FIELD_MAP.items()}

        with unit_of_work(self.db):
            venue = self.repo.create_venue(self.db, user.id, **venue_data)

        self.db.refresh(venue)
        logger.info(f"✅ Venue created: {venue.id} by user {user.id}")
        return venue

    def update_venue(self, venue_id: int, data: VenueUpdate, user: User) -> Venue:
        """
        Update a venue.

        Changing the standard commission does not reprice existing proposals;
        they are recalculated the next time the proposal itself is updated.
        """
        venue = self.get_venue(venue_id, user)
        updates = {FIELD_MAP[field]: value for field, value in data.model_dump(exclude_unset=True).items()}

        with unit_of_work(self.db):
            self.repo.update_venue(self.db, venue, **updates)

        self.db.refresh(venue)
        logger.info(f"✅ Venue updated: {venue.id} by user {user.id}")
        return venue

    def delete_venue(self, venue_id: int, user: User) -> None:
        venue = self.get_venue(venue_id, user)

        with unit_of_work(self.db, isolation_level="SERIALIZABLE"):
            check = can_delete_venue(self.db, venue.id)
            if not check.can_delete:
                logger.warning(f"⚠️ Refusing to delete venue {venue.id}: {check.reason}")
                raise conflict(f"Cannot delete venue: {check.reason}")
            self.repo.delete_venue(self.db, venue)

        logger.info(f"🗑️ Venue deleted: {venue_id} by user {user.id}")
