"""
Inventory router: the append-only stock ledger.

Contract: every stock change is an inventory log entry, and a product's
stock equals the sum of its logged changes.
"""
from io import StringIO
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from hostel_store import models
from hostel_store.crud.catalog import crud_product
from hostel_store.crud.inventory import crud_inventory_log
from hostel_store.database import get_db
from hostel_store.models import utcnow
from hostel_store.schemas.dashboard import DateRange, InventoryLogResponse
from hostel_store.security import require_admin
from hostel_store.utils.analytics import export_inventory_logs_csv, inventory_logs

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/logs", response_model=List[InventoryLogResponse])
def list_inventory_logs(
    search: Optional[str] = None,
    action: Optional[str] = Query(None, pattern="^(all|restock|sale|adjustment)$"),
    date_range: DateRange = Query(DateRange.ALL, alias="dateRange"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return inventory_logs(db, search=search, action=action, date_range=date_range, limit=limit)


@router.get("/logs/export")
def export_inventory_logs(
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Download the whole inventory log as CSV."""
    content = export_inventory_logs_csv(db)
    filename = f"inventory_logs_{utcnow().strftime('%Y%m%d')}.csv"
    return StreamingResponse(
        StringIO(content),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/products/{product_id}/logs", response_model=List[InventoryLogResponse])
def get_product_logs(
    product_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    crud_product.get_or_404(db, product_id)
    return crud_inventory_log.get_product_logs(db, product_id, skip=skip, limit=limit)


@router.get("/products/{product_id}/reconcile")
def reconcile_product_stock(
    product_id: int,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Compare stored stock with the stock rebuilt from the ledger."""
    product = crud_product.get_or_404(db, product_id)
    ledger_stock = crud_inventory_log.reconstruct_stock(db, product_id)
    return {
        "productId": product.id,
        "name": product.name,
        "stock": product.stock,
        "ledgerStock": ledger_stock,
        "consistent": product.stock == ledger_stock,
    }
