"""
Sale transactions.

process_sale turns a cart into a completed transaction:

    resolve student -> validate stock -> validate balance
        -> transaction row -> balance debit -> stock decrement + "sale" log per line

Student and product rows are locked (SELECT ... FOR UPDATE) and all writes
are committed once at the end. Any failure rolls back every write, so a
failed sale leaves no transaction, no debit and no stock movement.
"""
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from hostel_store.config import settings
from hostel_store.crud.base import CRUDBase
from hostel_store.crud.catalog import crud_product
from hostel_store.crud.inventory import crud_inventory_log
from hostel_store.crud.student import crud_student
from hostel_store.exceptions import (
    HostelStoreError,
    InsufficientBalanceError,
    InsufficientStockError,
    PersistenceError,
    ProductNotFoundError,
    ValidationError,
)
from hostel_store.models import (
    InventoryAction,
    Product,
    StudentStatus,
    Transaction,
    TransactionItem,
    TransactionStatus,
)
from hostel_store.schemas.transaction import SaleItem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def order_total(items: Sequence[SaleItem]) -> Decimal:
    """Sum of quantity x unit price; prices carry at most two decimal places."""
    total = sum((item.quantity * Decimal(item.price) for item in items), Decimal("0"))
    return total.quantize(CENT)


class CRUDTransaction(CRUDBase[Transaction]):
    def __init__(self):
        super().__init__(Transaction)

    def process_sale(
        self,
        db: Session,
        *,
        student_ref: str,
        items: Sequence[SaleItem],
        seller_id: int,
    ) -> Transaction:
        """
        Sell ``items`` to the student identified by ``student_ref`` (id or
        roll number), debiting their balance.

        Raises:
            StudentNotFoundError / ProductNotFoundError: unknown references.
            ValidationError: empty cart, inactive student/product, or a
                price mismatch when ENFORCE_CATALOG_PRICE is on.
            InsufficientStockError: a product cannot cover the requested
                quantity (summed over repeated lines).
            InsufficientBalanceError: the student cannot pay the total.
            PersistenceError: the database failed; nothing was written.
        """
        if not items:
            raise ValidationError("A sale needs at least one item")

        try:
            student = crud_student.resolve(db, student_ref, for_update=True)
            if student.status != StudentStatus.ACTIVE.value:
                raise ValidationError(f"Student {student.roll_number} is inactive")

            products = self._validate_stock(db, items)
            total = order_total(items)

            if student.balance < total:
                raise InsufficientBalanceError(balance=student.balance, required=total)

            transaction = Transaction(
                student_id=student.id,
                seller_id=seller_id,
                total_amount=total,
                status=TransactionStatus.COMPLETED.value,
                items=[
                    TransactionItem(
                        position=position,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        price=Decimal(item.price).quantize(CENT),
                    )
                    for position, item in enumerate(items)
                ],
            )
            db.add(transaction)
            db.flush()

            student.balance = (student.balance - total).quantize(CENT)

            for item in items:
                crud_inventory_log.record_movement(
                    db,
                    product=products[item.product_id],
                    quantity_change=-item.quantity,
                    action=InventoryAction.SALE,
                    user_id=seller_id,
                    reason=f"Sale - Transaction #{transaction.id}",
                )

            db.commit()
        except HostelStoreError as e:
            db.rollback()
            logger.warning(f"Sale to '{student_ref}' rejected: {e.message}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Sale to '{student_ref}' failed, rolled back: {e}")
            raise PersistenceError("Failed to process transaction") from e

        logger.info(
            f"Transaction #{transaction.id}: {len(items)} lines, total {total} "
            f"for {student.roll_number} (balance now {student.balance})"
        )
        return transaction

    def _validate_stock(self, db: Session, items: Sequence[SaleItem]) -> Dict[int, Product]:
        """Lock every product in the cart and check it can cover the cart."""
        products: Dict[int, Product] = {}
        requested: Dict[int, int] = defaultdict(int)

        for item in items:
            product = products.get(item.product_id)
            if product is None:
                product = crud_product.get(db, item.product_id, for_update=True)
                if product is None:
                    raise ProductNotFoundError(item.product_id)
                if not product.is_active:
                    raise ValidationError(f"{product.name} is not available for sale")
                products[item.product_id] = product

            if settings.ENFORCE_CATALOG_PRICE and Decimal(item.price) != product.price:
                raise ValidationError(f"Price of {product.name} is {product.price}, not {item.price}")

            requested[item.product_id] += item.quantity
            if product.stock < requested[item.product_id]:
                raise InsufficientStockError(
                    product.name, available=product.stock, requested=requested[item.product_id]
                )

        return products

    def list_transactions(
        self,
        db: Session,
        *,
        student_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """Newest first; a student filter takes precedence over the date window."""
        filters = []
        if student_id is not None:
            filters.append(Transaction.student_id == student_id)
        elif start_date and end_date:
            filters.extend([Transaction.created_at >= start_date, Transaction.created_at <= end_date])

        stmt = (
            select(Transaction)
            .options(selectinload(Transaction.items), selectinload(Transaction.student))
            .where(*filters)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return list(db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing transactions: {e}")
            raise PersistenceError("Failed to fetch transactions") from e


crud_transaction = CRUDTransaction()
