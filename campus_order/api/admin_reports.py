"""
Admin sales report endpoints
"""

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from campus_order.core.config import Settings, get_settings
from campus_order.core.database import get_session
from campus_order.core.dependencies import require_permission
from campus_order.core.permissions import Permission
from campus_order.models.admin import Admin
from campus_order.services.reports import SalesReportService

router = APIRouter()


@router.get("/sales")
def get_sales_report(
    period: str = Query("today", description="today, last7 or last30"),
    admin: Admin = Depends(require_permission(Permission.REPORTS_VIEW)),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Order counts and collected sales for the period, grouped by display day"""
    return {"report": SalesReportService(session, settings.TIMEZONE).sales_report(period)}
