"""
Inventory ledger operations:
- Stock only moves through record_movement, which appends a log entry
- The log is append-only; current stock can be rebuilt from it
- Adjustments lock the product row and commit stock and log together
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_store.crud.base import CRUDBase
from hostel_store.exceptions import HostelStoreError, InsufficientStockError, PersistenceError, ProductNotFoundError
from hostel_store.models import InventoryAction, InventoryLog, Product

logger = logging.getLogger(__name__)


class CRUDInventoryLog(CRUDBase[InventoryLog]):
    def __init__(self):
        super().__init__(InventoryLog)

    def record_movement(
        self,
        db: Session,
        *,
        product: Product,
        quantity_change: int,
        action: InventoryAction,
        user_id: int,
        reason: Optional[str] = None,
    ) -> InventoryLog:
        """
        Move ``product.stock`` by ``quantity_change`` and append the matching
        log entry. Nothing is committed; the caller owns the transaction.

        Raises:
            InsufficientStockError: the resulting stock would be negative.
        """
        previous_stock = product.stock
        new_stock = previous_stock + quantity_change
        if new_stock < 0:
            raise InsufficientStockError(product.name, available=previous_stock, requested=-quantity_change)

        product.stock = new_stock
        return self.create(
            db,
            obj_in={
                "product_id": product.id,
                "action": InventoryAction(action).value,
                "quantity_change": quantity_change,
                "previous_stock": previous_stock,
                "new_stock": new_stock,
                "reason": reason,
                "user_id": user_id,
            },
            commit=False,
        )

    def adjust_stock(
        self,
        db: Session,
        *,
        product_id: int,
        quantity: int,
        user_id: int,
        reason: Optional[str] = None,
    ) -> Product:
        """
        Apply a signed stock change to a product (restock or manual adjustment).

        Positive quantities are logged as ``restock``, everything else as
        ``adjustment``. Sales never come through here.
        """
        action = InventoryAction.RESTOCK if quantity > 0 else InventoryAction.ADJUSTMENT
        if not reason:
            reason = "Restock" if quantity > 0 else "Adjustment"

        try:
            product = db.execute(
                select(Product).where(Product.id == product_id).with_for_update()
            ).scalar_one_or_none()
            if product is None:
                raise ProductNotFoundError(product_id)

            entry = self.record_movement(
                db,
                product=product,
                quantity_change=quantity,
                action=action,
                user_id=user_id,
                reason=reason,
            )
            db.commit()
        except HostelStoreError as e:
            db.rollback()
            logger.warning(f"Stock adjustment of {quantity} on product {product_id} rejected: {e.message}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error adjusting stock for product {product_id}: {e}")
            raise PersistenceError("Failed to update stock") from e

        logger.info(
            f"Stock of {product.name} {entry.previous_stock} -> {entry.new_stock} "
            f"({action.value}, user {user_id})"
        )
        return product

    def reconstruct_stock(self, db: Session, product_id: int) -> int:
        """Current stock as the SUM of logged quantity changes."""
        stmt = select(func.coalesce(func.sum(InventoryLog.quantity_change), 0)).where(
            InventoryLog.product_id == product_id
        )
        return int(db.execute(stmt).scalar_one())

    def get_product_logs(self, db: Session, product_id: int, *, skip: int = 0, limit: int = 100) -> List[InventoryLog]:
        return self.get_multi(
            db,
            filters=[InventoryLog.product_id == product_id],
            order_by=[InventoryLog.created_at.desc(), InventoryLog.id.desc()],
            skip=skip,
            limit=limit,
        )


crud_inventory_log = CRUDInventoryLog()
