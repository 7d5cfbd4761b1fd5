"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Client, Proposal
from ...shared.pagination import Pagination, build_search_filter, paginate_query

SORT_FIELDS = {
    "name": Client.name,
    "company": Client.company,
    "createdAt": Client.created_at,
    "updatedAt": Client.updated_at,
}

SEARCH_COLUMNS = [Client.name, Client.company, Client.contact_name, Client.email]


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def list_clients(
        db: Session,
        pagination: Pagination,
        order_by,
        owner_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Client], int]:
        """Get one page of clients, optionally restricted to an owner"""
        query = db.query(Client).options(joinedload(Client.created_by_user))

        if owner_id is not None:
            query = query.filter(Client.created_by == owner_id)

        search_filter = build_search_filter(SEARCH_COLUMNS, search)
        if search_filter is not None:
            query = query.filter(search_filter)

        return paginate_query(query, pagination, order_by)

    @staticmethod
    def get_client_by_id(db: Session, client_id: int) -> Optional[Client]:
        return (
            db.query(Client)
            .options(joinedload(Client.created_by_user))
            .filter(Client.id == client_id)
            .first()
        )

    @staticmethod
    def count_related(db: Session, client_ids: list[int]) -> dict[int, dict[str, int]]:
        """Proposal and booking counts per client in two grouped queries"""
        counts = {client_id: {"proposals": 0, "bookings": 0} for client_id in client_ids}
        if not client_ids:
            return counts

        for client_id, total in (
            db.query(Proposal.client_id, func.count(Proposal.id))
            .filter(Proposal.client_id.in_(client_ids))
            .group_by(Proposal.client_id)
        ):
            counts[client_id]["proposals"] = total

        for client_id, total in (
            db.query(Booking.client_id, func.count(Booking.id))
            .filter(Booking.client_id.in_(client_ids))
            .group_by(Booking.client_id)
        ):
            counts[client_id]["bookings"] = total

        return counts

    @staticmethod
    def create_client(db: Session, created_by: int, **client_data) -> Client:
        client = Client(created_by=created_by, **client_data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Apply the provided fields; None clears an optional field"""
        for key, value in updates.items():
            setattr(client, key, value)
        db.flush()
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        db.delete(client)
        db.flush()
