from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hostel_store import models
from hostel_store.crud.transaction import crud_transaction
from hostel_store.database import get_db
from hostel_store.schemas.transaction import TransactionCreate, TransactionResponse
from hostel_store.security import require_accountant, require_seller

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; convert offset-aware query values to match."""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    sale: TransactionCreate,
    current_user: models.User = Depends(require_seller),
    db: Session = Depends(get_db),
):
    """
    Sell a cart to a student.

    The seller is the authenticated user. Either every effect of the sale is
    stored (transaction, balance debit, stock decrements, inventory logs) or
    none of them is.
    """
    return crud_transaction.process_sale(
        db,
        student_ref=sale.student_id,
        items=sale.items,
        seller_id=current_user.id,
    )


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
    student_id: Optional[int] = Query(None, alias="studentId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    return crud_transaction.list_transactions(
        db, student_id=student_id, start_date=_as_utc(start_date), end_date=_as_utc(end_date)
    )
