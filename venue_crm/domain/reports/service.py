"""Report service - Dashboard, pipeline and commission metrics"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import OPTION_EXPIRY_WARNING_DAYS
from ...models import User
from ...permissions import Permission, has_permission
from ...shared.money import ZERO, quantize_money
from ..bookings.workflow import STATUS_ORDER, BookingStatus
from ..claims.schemas import ClaimStatus
from ..claims.service import overdue_cutoff
from .repository import ReportRepository
from .schemas import (
    ClaimBucket,
    CommissionReport,
    DashboardReport,
    EntityCounts,
    ExpiringOption,
    PipelineReport,
    PipelineStage,
    ProposalStage,
)

logger = logging.getLogger(__name__)

# Bookings that count as secured business
BOOKED_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)
# Claims that have been invoiced to the venue
ISSUED_CLAIM_STATUSES = (ClaimStatus.SENT.value, ClaimStatus.OVERDUE.value, ClaimStatus.PAID.value)
OUTSTANDING_CLAIM_STATUSES = (ClaimStatus.SENT.value, ClaimStatus.OVERDUE.value)
PROPOSAL_STATUSES = ("draft", "sent")


def _sum(buckets: dict[str, dict], statuses, key: str):
    return quantize_money(sum((buckets[s][key] for s in statuses if s in buckets), ZERO))


class ReportService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ReportRepository()

    @staticmethod
    def owner_scope(user: User) -> Optional[int]:
        """None when the user may report on everyone, else their own id"""
        return None if has_permission(user, Permission.VIEW_ALL_REPORTS) else user.id

    @staticmethod
    def scope_label(owner_id: Optional[int]) -> str:
        return "all" if owner_id is None else "own"

    def dashboard(self, user: User, today: Optional[date] = None) -> DashboardReport:
        today = today or date.today()
        owner_id = self.owner_scope(user)

        bookings = self.repo.bookings_by_status(self.db, owner_id)
        claims = self.repo.claims_by_status(self.db, overdue_cutoff(today), owner_id)
        expiring = self.repo.expiring_options(
            self.db, today, today + timedelta(days=OPTION_EXPIRY_WARNING_DAYS), owner_id
        )

        logger.info(f"📊 Dashboard report for user {user.id} (scope {self.scope_label(owner_id)})")
        return DashboardReport(
            scope=self.scope_label(owner_id),
            counts=EntityCounts(**self.repo.entity_counts(self.db, owner_id)),
            bookingsByStatus={s.value: bookings.get(s.value, {}).get("count", 0) for s in STATUS_ORDER},
            totalBookedValue=_sum(bookings, BOOKED_STATUSES, "totalValue"),
            totalCommission=_sum(bookings, BOOKED_STATUSES, "commission"),
            expiringOptions=[
                ExpiringOption(
                    bookingId=b.id,
                    clientName=b.client.name if b.client else None,
                    venueName=b.venue.name if b.venue else None,
                    optionExpiry=b.option_expiry,
                    daysRemaining=(b.option_expiry - today).days,
                    totalValue=quantize_money(b.total_value),
                )
                for b in expiring
            ],
            expiringWithinDays=OPTION_EXPIRY_WARNING_DAYS,
            claimsOutstanding=_sum(claims, OUTSTANDING_CLAIM_STATUSES, "amount"),
        )

    def pipeline(self, user: User) -> PipelineReport:
        """Booking value and commission per workflow stage, in workflow order"""
        owner_id = self.owner_scope(user)
        bookings = self.repo.bookings_by_status(self.db, owner_id)
        proposals = self.repo.proposals_by_status(self.db, owner_id)

        stages = []
        for status in STATUS_ORDER:
            bucket = bookings.get(status.value, {})
            stages.append(
                PipelineStage(
                    status=status.value,
                    count=bucket.get("count", 0),
                    totalValue=bucket.get("totalValue", ZERO),
                    commission=bucket.get("commission", ZERO),
                )
            )

        return PipelineReport(
            scope=self.scope_label(owner_id),
            stages=stages,
            proposals=[
                ProposalStage(
                    status=status,
                    count=proposals.get(status, {}).get("count", 0),
                    totalValue=proposals.get(status, {}).get("totalValue", ZERO),
                    expectedCommission=proposals.get(status, {}).get("expectedCommission", ZERO),
                )
                for status in PROPOSAL_STATUSES
            ],
        )

    def commission(self, user: User, today: Optional[date] = None) -> CommissionReport:
        owner_id = self.owner_scope(user)
        claims = self.repo.claims_by_status(self.db, overdue_cutoff(today), owner_id)
        bookings = self.repo.bookings_by_status(self.db, owner_id)

        return CommissionReport(
            scope=self.scope_label(owner_id),
            claimsByStatus={
                s.value: ClaimBucket(
                    count=claims.get(s.value, {}).get("count", 0),
                    amount=claims.get(s.value, {}).get("amount", ZERO),
                )
                for s in ClaimStatus
            },
            expectedCommission=self.repo.expected_commission(self.db, owner_id),
            bookedCommission=_sum(bookings, BOOKED_STATUSES, "commission"),
            claimed=_sum(claims, ISSUED_CLAIM_STATUSES, "amount"),
            paid=_sum(claims, (ClaimStatus.PAID.value,), "amount"),
            outstanding=_sum(claims, OUTSTANDING_CLAIM_STATUSES, "amount"),
        )
