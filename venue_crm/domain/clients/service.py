"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ensure_resource_access
from ...database import unit_of_work
from ...errors import conflict, not_found
from ...models import Client, User
from ...permissions import Permission, has_permission
from ...shared.integrity import can_delete_client
from ...shared.pagination import apply_pagination, create_paginated_result, resolve_sort
from .repository import SORT_FIELDS, ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)

# Schema field -> column
FIELD_MAP = {
    "name": "name",
    "company": "company",
    "contactName": "contact_name",
    "email": "email",
    "phone": "phone",
    "notes": "notes",
}


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def list_clients(
        self,
        user: User,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        """Page of clients visible to ``user`` plus related counts keyed by client id"""
        pagination = apply_pagination(page, limit, default_limit=20)
        owner_id = None if has_permission(user, Permission.VIEW_ALL_CLIENTS) else user.id

        clients, total = self.repo.list_clients(
            self.db,
            pagination,
            resolve_sort(SORT_FIELDS, sort_by, sort_order),
            owner_id=owner_id,
            search=search,
        )
        counts = self.repo.count_related(self.db, [c.id for c in clients])
        result = create_paginated_result(clients, total, pagination.page, pagination.limit)
        result["counts"] = counts
        return result

    def get_client(self, client_id: int, user: User) -> Client:
        """Get a client the user is allowed to see"""
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise not_found("Client not found")
        ensure_resource_access(user, client.created_by)
        return client

    def create_client(self, data: ClientCreate, user: User) -> Client:
        logger.info(f"📥 Creating client for user_id: {user.id}")
        client_data = {column: getattr(data, field) for field, column in FIELD_MAP.items()}

        with unit_of_work(self.db):
            client = self.repo.create_client(self.db, user.id, **client_data)

        self.db.refresh(client)
        logger.info(f"✅ Client created: {client.id} by user {user.id}")
        return client

    def update_client(self, client_id: int, data: ClientUpdate, user: User) -> Client:
        client = self.get_client(client_id, user)
        updates = {FIELD_MAP[field]: value for field, value in data.model_dump(exclude_unset=True).items()}

        with unit_of_work(self.db):
            self.repo.update_client(self.db, client, **updates)

        self.db.refresh(client)
        logger.info(f"✅ Client updated: {client.id} by user {user.id}")
        return client

    def delete_client(self, client_id: int, user: User) -> None:
        """Delete a client that nothing references any more"""
        client = self.get_client(client_id, user)

        with unit_of_work(self.db, isolation_level="SERIALIZABLE"):
            check = can_delete_client(self.db, client.id)
            if not check.can_delete:
                logger.warning(f"⚠️ Refusing to delete client {client.id}: {check.reason}")
                raise conflict(f"Cannot delete client: {check.reason}")
            self.repo.delete_client(self.db, client)

        logger.info(f"🗑️ Client deleted: {client_id} by user {user.id}")
