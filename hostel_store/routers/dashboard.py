"""
Reporting router: analytics, dashboard cards and the daily sales PDF.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from hostel_store import models
from hostel_store.database import get_db
from hostel_store.models import utcnow
from hostel_store.schemas.dashboard import Analytics, DashboardStats
from hostel_store.schemas.transaction import TransactionResponse
from hostel_store.security import require_accountant
from hostel_store.utils import analytics
from hostel_store.utils.pdf_reports import pdf_generator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reporting"])


@router.get("/analytics", response_model=Analytics)
def get_analytics(
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    return analytics.compute_analytics(db)


@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    return analytics.dashboard_stats(db)


@router.get("/dashboard/recent-transactions", response_model=List[TransactionResponse])
def get_recent_transactions(
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    return analytics.recent_transactions(db, limit=limit)


@router.get("/reports/daily-sales")
def daily_sales_report(
    report_date: Optional[date] = Query(None, alias="date"),
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    """PDF of one UTC day's completed sales; defaults to today."""
    report_date = report_date or utcnow().date()
    start = datetime.combine(report_date, datetime.min.time())
    transactions = analytics.sales_between(db, start, start + timedelta(days=1))

    pdf_bytes = pdf_generator.generate_sales_report(
        transactions,
        report_date,
        low_stock=analytics.list_low_stock(db),
    )
    logger.info(
        f"{current_user.username} generated daily sales report for {report_date} "
        f"({len(transactions)} transactions)"
    )
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=daily_sales_{report_date.isoformat()}.pdf"},
    )
