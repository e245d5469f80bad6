"""
Read-side reporting over the store ledger.

Nothing here writes. Day boundaries are UTC midnights, matching the naive UTC
timestamps stored on every row; pass ``now`` to evaluate at a fixed moment.
"""
import calendar
import csv
from datetime import datetime, timedelta
from decimal import Decimal
from io import StringIO
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from hostel_store.config import settings
from hostel_store.crud.transaction import crud_transaction
from hostel_store.models import (
    InventoryAction,
    InventoryLog,
    Product,
    Student,
    Transaction,
    TransactionItem,
    TransactionStatus,
    utcnow,
)
from hostel_store.schemas.dashboard import DateRange

CENT = Decimal("0.01")


def day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """[midnight today, midnight tomorrow)"""
    now = now or utcnow()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def one_month_before(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def range_start(date_range: DateRange, now: Optional[datetime] = None) -> Optional[datetime]:
    """Earliest timestamp included by ``date_range``; None means unbounded."""
    now = now or utcnow()
    if date_range == DateRange.TODAY:
        return day_bounds(now)[0]
    if date_range == DateRange.WEEK:
        return now - timedelta(days=7)
    if date_range == DateRange.MONTH:
        return one_month_before(now)
    return None


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def _completed_totals(db: Session, *filters) -> Tuple[Decimal, int]:
    stmt = select(
        func.coalesce(func.sum(Transaction.total_amount), 0),
        func.count(Transaction.id),
    ).where(Transaction.status == TransactionStatus.COMPLETED.value, *filters)
    total, count = db.execute(stmt).one()
    return _money(total), int(count)


def compute_analytics(db: Session, now: Optional[datetime] = None) -> Dict:
    """Revenue totals over completed transactions."""
    start, end = day_bounds(now)
    total_revenue, total_transactions = _completed_totals(db)
    today_sales, _ = _completed_totals(db, Transaction.created_at >= start, Transaction.created_at < end)

    avg_transaction = Decimal("0.00")
    if total_transactions:
        avg_transaction = (total_revenue / total_transactions).quantize(CENT)

    return {
        "total_revenue": total_revenue,
        "today_sales": today_sales,
        "total_transactions": total_transactions,
        "avg_transaction": avg_transaction,
    }


def list_low_stock(db: Session) -> List[Product]:
    """Active products at or below their low-stock threshold."""
    stmt = (
        select(Product)
        .where(Product.is_active.is_(True), Product.stock <= Product.low_stock_threshold)
        .order_by(Product.created_at.desc(), Product.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def dashboard_stats(db: Session, now: Optional[datetime] = None) -> Dict:
    start, end = day_bounds(now)
    today_sales, today_transactions = _completed_totals(
        db, Transaction.created_at >= start, Transaction.created_at < end
    )
    total_students = db.execute(select(func.count(Student.id))).scalar_one()
    total_products = db.execute(
        select(func.count(Product.id)).where(Product.is_active.is_(True))
    ).scalar_one()

    return {
        "total_students": total_students,
        "total_products": total_products,
        "today_sales": today_sales,
        "today_transactions": today_transactions,
        "low_stock_count": len(list_low_stock(db)),
    }


def recent_transactions(db: Session, limit: Optional[int] = None) -> List[Transaction]:
    return crud_transaction.list_transactions(db, limit=limit or settings.RECENT_TRANSACTIONS_LIMIT)


def inventory_logs(
    db: Session,
    *,
    search: Optional[str] = None,
    action: Optional[str] = None,
    date_range: DateRange = DateRange.ALL,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[InventoryLog]:
    """
    Inventory movements, newest first.

    ``action`` of None or "all" keeps every action. ``search`` matches the
    product name or the log reason, case-insensitively.
    """
    stmt = (
        select(InventoryLog)
        .join(Product, InventoryLog.product_id == Product.id)
        .options(selectinload(InventoryLog.product))
    )

    start = range_start(date_range, now)
    if start is not None:
        stmt = stmt.where(InventoryLog.created_at >= start)
    if action and action != "all":
        stmt = stmt.where(InventoryLog.action == InventoryAction(action).value)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Product.name.ilike(pattern), InventoryLog.reason.ilike(pattern)))

    stmt = stmt.order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc()).limit(
        limit or settings.INVENTORY_LOG_PAGE_SIZE
    )
    return list(db.execute(stmt).scalars().all())


def export_inventory_logs_csv(db: Session) -> str:
    """Whole inventory log as CSV, newest first."""
    stmt = (
        select(InventoryLog)
        .options(selectinload(InventoryLog.product))
        .order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc())
    )

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(
        ["ID", "Product ID", "Product", "Action", "Quantity Change",
         "Previous Stock", "New Stock", "Reason", "User ID", "Created At"]
    )
    for entry in db.execute(stmt).scalars():
        writer.writerow([
            entry.id,
            entry.product_id,
            entry.product.name if entry.product else "",
            entry.action,
            entry.quantity_change,
            entry.previous_stock,
            entry.new_stock,
            entry.reason or "",
            entry.user_id,
            entry.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        ])
    return output.getvalue()


def sales_between(db: Session, start: datetime, end: datetime) -> List[Transaction]:
    """Completed transactions in [start, end), oldest first, with lines and products."""
    stmt = (
        select(Transaction)
        .options(
            selectinload(Transaction.items).selectinload(TransactionItem.product),
            selectinload(Transaction.student),
            selectinload(Transaction.seller),
        )
        .where(
            Transaction.status == TransactionStatus.COMPLETED.value,
            Transaction.created_at >= start,
            Transaction.created_at < end,
        )
        .order_by(Transaction.created_at, Transaction.id)
    )
    return list(db.execute(stmt).scalars().all())
