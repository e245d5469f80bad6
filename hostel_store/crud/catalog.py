"""
Catalog CRUD: categories and products.

Products reference categories by foreign key; the API speaks category names
and they are resolved here, at write time.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_store.crud.base import CRUDBase
from hostel_store.crud.inventory import crud_inventory_log
from hostel_store.exceptions import (
    CategoryNotFoundError,
    ConflictError,
    HostelStoreError,
    PersistenceError,
    ProductNotFoundError,
    ValidationError,
)
from hostel_store.models import Category, InventoryAction, InventoryLog, Product, TransactionItem
from hostel_store.schemas.catalog import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class CRUDCategory(CRUDBase[Category]):
    not_found_error = CategoryNotFoundError

    def __init__(self):
        super().__init__(Category)

    def get_by_name(self, db: Session, name: str) -> Optional[Category]:
        return self.get_by(db, name=name.strip())

    def resolve_name(self, db: Session, name: str) -> Category:
        """Category for a product write; it must exist and be active."""
        category = self.get_by_name(db, name)
        if category is None:
            raise CategoryNotFoundError(name, message=f"Category '{name}' not found")
        if not category.is_active:
            raise ValidationError(f"Category '{name}' is inactive")
        return category

    def list_categories(self, db: Session) -> List[Category]:
        return self.get_multi(db, order_by=[Category.created_at.desc(), Category.id.desc()], limit=None)

    def create_category(self, db: Session, *, obj_in: CategoryCreate) -> Category:
        if self.get_by_name(db, obj_in.name):
            raise ConflictError(f"Category '{obj_in.name}' already exists")
        data = obj_in.model_dump()
        data["name"] = data["name"].strip()
        return self.create(db, obj_in=data)

    def update_category(self, db: Session, *, id: int, obj_in: CategoryUpdate) -> Category:
        category = self.get_or_404(db, id)
        data = obj_in.model_dump(exclude_unset=True)
        if data.get("name"):
            data["name"] = data["name"].strip()
            existing = self.get_by_name(db, data["name"])
            if existing is not None and existing.id != id:
                raise ConflictError(f"Category '{data['name']}' already exists")
        return self.apply(db, category, data)

    def remove_category(self, db: Session, *, id: int) -> Category:
        category = self.get_or_404(db, id)
        in_use = db.execute(
            select(func.count(Product.id)).where(Product.category_id == id)
        ).scalar_one()
        if in_use:
            raise ConflictError(f"Category '{category.name}' is used by {in_use} products")
        return self.remove(db, id=id)

    def seed_defaults(self, db: Session, names: Iterable[str]) -> int:
        """Create any missing default categories; returns how many were added."""
        added = 0
        for name in names:
            if self.get_by_name(db, name) is None:
                self.create(db, obj_in={"name": name}, commit=False)
                added += 1
        if added:
            db.commit()
            logger.info(f"Seeded {added} default categories")
        return added


class CRUDProduct(CRUDBase[Product]):
    not_found_error = ProductNotFoundError

    def __init__(self):
        super().__init__(Product)

    def list_products(self, db: Session, *, category: Optional[str] = None, active_only: bool = True) -> List[Product]:
        filters = []
        if active_only:
            filters.append(Product.is_active.is_(True))
        if category:
            filters.append(Product.category_id.in_(select(Category.id).where(Category.name == category)))
        return self.get_multi(
            db, filters=filters, order_by=[Product.created_at.desc(), Product.id.desc()], limit=None
        )

    def create_product(self, db: Session, *, obj_in: ProductCreate, user_id: int) -> Product:
        """
        Create a product at zero stock, then log any opening stock as a
        restock so the inventory log accounts for every unit.
        """
        data = obj_in.model_dump()
        opening_stock = data.pop("stock")
        category = crud_category.resolve_name(db, data.pop("category"))
        data["category_rel"] = category
        data["stock"] = 0

        try:
            product = self.create(db, obj_in=data, commit=False)
            if opening_stock:
                crud_inventory_log.record_movement(
                    db,
                    product=product,
                    quantity_change=opening_stock,
                    action=InventoryAction.RESTOCK,
                    user_id=user_id,
                    reason="Opening stock",
                )
            db.commit()
        except HostelStoreError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating product {obj_in.name}: {e}")
            raise PersistenceError("Failed to create product") from e

        logger.info(f"Created product {product.name} ({category.name}) with stock {product.stock}")
        return product

    def update_product(self, db: Session, *, id: int, obj_in: ProductUpdate) -> Product:
        product = self.get_or_404(db, id)
        data = obj_in.model_dump(exclude_unset=True)
        category_name = data.pop("category", None)
        if category_name:
            data["category_rel"] = crud_category.resolve_name(db, category_name)
        return self.apply(db, product, data)

    def remove_product(self, db: Session, *, id: int) -> Tuple[Product, bool]:
        """
        Delete a product that has no history. A product with inventory logs
        or sales is deactivated instead, keeping the ledger intact.

        Returns the product and whether it was actually deleted.
        """
        product = self.get_or_404(db, id)
        logs = db.execute(select(func.count(InventoryLog.id)).where(InventoryLog.product_id == id)).scalar_one()
        sold = db.execute(select(func.count(TransactionItem.id)).where(TransactionItem.product_id == id)).scalar_one()
        if logs or sold:
            self.apply(db, product, {"is_active": False})
            logger.info(f"Deactivated product {product.name} instead of deleting it (has history)")
            return product, False
        self.remove(db, id=id)
        return product, True


crud_category = CRUDCategory()
crud_product = CRUDProduct()
