"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api_response import created_response, paginated_response, success_response
from ...auth import require_permission
from ...database import get_db
from ...models import Client, User
from ...permissions import Permission
from ...shared.money import quantize_money
from ...shared.schemas import SortOrder, user_summary
from .schemas import (
    ClientBookingSummary,
    ClientCreate,
    ClientDetailResponse,
    ClientProposalSummary,
    ClientResponse,
    ClientUpdate,
    RelatedCounts,
)
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


def client_response(client: Client, counts: Optional[dict] = None) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        company=client.company,
        contactName=client.contact_name,
        email=client.email,
        phone=client.phone,
        notes=client.notes,
        createdBy=client.created_by,
        createdByUser=user_summary(client.created_by_user),
        counts=RelatedCounts(**counts) if counts is not None else None,
        createdAt=client.created_at,
        updatedAt=client.updated_at,
    )


def client_detail_response(client: Client) -> ClientDetailResponse:
    proposals = sorted(client.proposals, key=lambda p: p.id, reverse=True)
    bookings = sorted(client.bookings, key=lambda b: b.id, reverse=True)
    return ClientDetailResponse(
        **client_response(
            client, {"proposals": len(proposals), "bookings": len(bookings)}
        ).model_dump(),
        proposals=[
            ClientProposalSummary(
                id=p.id,
                status=p.status,
                totalValue=quantize_money(p.total_value),
                expectedCommission=quantize_money(p.expected_commission),
                createdAt=p.created_at,
            )
            for p in proposals
        ],
        bookings=[
            ClientBookingSummary(
                id=b.id,
                status=b.status,
                totalValue=quantize_money(b.total_value),
                commissionAmount=quantize_money(b.commission_amount),
                venueId=b.venue_id,
                venueName=b.venue.name if b.venue else None,
                createdAt=b.created_at,
            )
            for b in bookings
        ],
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("")
async def list_clients(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[SortOrder] = Query(None, alias="sortOrder"),
    current_user: User = Depends(require_permission(Permission.VIEW_CLIENT)),
    service: ClientService = Depends(get_client_service),
):
    """List clients with pagination, search and sorting"""
    result = service.list_clients(current_user, page, limit, search, sort_by, sort_order)
    counts = result.pop("counts")
    result["data"] = [client_response(c, counts.get(c.id)) for c in result["data"]]
    return paginated_response(result)


@router.get("/{client_id}")
async def get_client(
    client_id: int,
    current_user: User = Depends(require_permission(Permission.VIEW_CLIENT)),
    service: ClientService = Depends(get_client_service),
):
    """Get a client with its proposals and bookings"""
    client = service.get_client(client_id, current_user)
    return success_response(client_detail_response(client))


@router.post("", status_code=201)
async def create_client(
    data: ClientCreate,
    current_user: User = Depends(require_permission(Permission.CREATE_CLIENT)),
    service: ClientService = Depends(get_client_service),
):
    client = service.create_client(data, current_user)
    return created_response(client_response(client))


@router.put("/{client_id}")
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user: User = Depends(require_permission(Permission.UPDATE_CLIENT)),
    service: ClientService = Depends(get_client_service),
):
    client = service.update_client(client_id, data, current_user)
    return success_response(client_response(client))


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    current_user: User = Depends(require_permission(Permission.DELETE_CLIENT)),
    service: ClientService = Depends(get_client_service),
):
    """Delete a client with no proposals or bookings"""
    service.delete_client(client_id, current_user)
    return success_response(message="Client deleted successfully")
