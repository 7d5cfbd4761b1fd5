"""Report router - Aggregate metrics for the dashboard"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api_response import success_response
from ...auth import require_permission
from ...database import get_db
from ...models import User
from ...permissions import Permission
from .service import ReportService

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


@router.get("/dashboard")
async def dashboard_report(
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    service: ReportService = Depends(get_report_service),
):
    """Headline counts, booked value, expiring options and outstanding claims"""
    return success_response(service.dashboard(current_user))


@router.get("/pipeline")
async def pipeline_report(
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    service: ReportService = Depends(get_report_service),
):
    return success_response(service.pipeline(current_user))


@router.get("/commission")
async def commission_report(
    current_user: User = Depends(require_permission(Permission.VIEW_REPORTS)),
    service: ReportService = Depends(get_report_service),
):
    return success_response(service.commission(current_user))
