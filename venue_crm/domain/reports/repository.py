"""Report repository - Aggregate queries behind the reporting endpoints"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Client, CommissionClaim, Proposal, Venue
from ...shared.money import quantize_money, to_decimal
from ..claims.repository import overdue_clause


def _owned(query, model, owner_id: Optional[int]):
    if owner_id is not None:
        query = query.filter(model.created_by == owner_id)
    return query


def _money(value) -> Decimal:
    return quantize_money(to_decimal(value))


class ReportRepository:
    @staticmethod
    def count(db: Session, model, owner_id: Optional[int] = None) -> int:
        return _owned(db.query(func.count(model.id)), model, owner_id).scalar() or 0

    @staticmethod
    def entity_counts(db: Session, owner_id: Optional[int] = None) -> dict[str, int]:
        return {
            "clients": ReportRepository.count(db, Client, owner_id),
            "venues": ReportRepository.count(db, Venue, owner_id),
            "proposals": ReportRepository.count(db, Proposal, owner_id),
            "bookings": ReportRepository.count(db, Booking, owner_id),
        }

    @staticmethod
    def bookings_by_status(db: Session, owner_id: Optional[int] = None) -> dict[str, dict]:
        """{status: {count, totalValue, commission}} for statuses that have bookings"""
        query = db.query(
            Booking.status,
            func.count(Booking.id),
            func.coalesce(func.sum(Booking.total_value), 0),
            func.coalesce(func.sum(Booking.commission_amount), 0),
        )
        rows = _owned(query, Booking, owner_id).group_by(Booking.status).all()
        return {
            status: {"count": count, "totalValue": _money(total), "commission": _money(commission)}
            for status, count, total, commission in rows
        }

    @staticmethod
    def proposals_by_status(db: Session, owner_id: Optional[int] = None) -> dict[str, dict]:
        query = db.query(
            Proposal.status,
            func.count(Proposal.id),
            func.coalesce(func.sum(Proposal.total_value), 0),
            func.coalesce(func.sum(Proposal.expected_commission), 0),
        )
        rows = _owned(query, Proposal, owner_id).group_by(Proposal.status).all()
        return {
            status: {"count": count, "totalValue": _money(total), "expectedCommission": _money(commission)}
            for status, count, total, commission in rows
        }

    @staticmethod
    def claims_by_status(db: Session, overdue_before: date, owner_id: Optional[int] = None) -> dict[str, dict]:
        """Claims grouped by effective status, so stale ``sent`` claims count as overdue"""
        effective = db.query(
            case((overdue_clause(overdue_before), "overdue"), else_=CommissionClaim.status).label("status"),
            CommissionClaim.amount.label("amount"),
        )
        claims = _owned(effective, CommissionClaim, owner_id).subquery()
        rows = (
            db.query(claims.c.status, func.count(), func.coalesce(func.sum(claims.c.amount), 0))
            .group_by(claims.c.status)
            .all()
        )
        return {name: {"count": count, "amount": _money(amount)} for name, count, amount in rows}

    @staticmethod
    def expected_commission(db: Session, owner_id: Optional[int] = None) -> Decimal:
        query = db.query(func.coalesce(func.sum(Proposal.expected_commission), 0))
        return _money(_owned(query, Proposal, owner_id).scalar())

    @staticmethod
    def expiring_options(
        db: Session, today: date, until: date, owner_id: Optional[int] = None
    ) -> list[Booking]:
        """Bookings on option whose expiry falls between today and ``until`` inclusive"""
        query = (
            db.query(Booking)
            .options(joinedload(Booking.client), joinedload(Booking.venue))
            .filter(
                Booking.status == "option",
                Booking.option_expiry.isnot(None),
                Booking.option_expiry >= today,
                Booking.option_expiry <= until,
            )
        )
        return _owned(query, Booking, owner_id).order_by(Booking.option_expiry.asc(), Booking.id.asc()).all()
