"""
Catalog router: categories and products.

Catalog structure and stock are admin-controlled. Sellers and accountants
read products to build carts and watch stock levels.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hostel_store import models
from hostel_store.crud.catalog import crud_category, crud_product
from hostel_store.crud.inventory import crud_inventory_log
from hostel_store.database import get_db
from hostel_store.schemas.catalog import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)
from hostel_store.security import require_admin, require_staff
from hostel_store.utils.analytics import list_low_stock

logger = logging.getLogger(__name__)

categories_router = APIRouter(prefix="/categories", tags=["categories"])
products_router = APIRouter(prefix="/products", tags=["products"])


# ====================
# CATEGORIES
# ====================

@categories_router.get("", response_model=List[CategoryResponse])
def list_categories(
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return crud_category.list_categories(db)


@categories_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category: CategoryCreate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud_category.create_category(db, obj_in=category)


@categories_router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    category: CategoryUpdate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud_category.update_category(db, id=category_id, obj_in=category)


@categories_router.delete("/{category_id}")
def delete_category(
    category_id: int,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    crud_category.remove_category(db, id=category_id)
    return {"message": "Category deleted successfully"}


# ====================
# PRODUCTS
# ====================

@products_router.get("", response_model=List[ProductResponse])
def list_products(
    category: Optional[str] = None,
    include_inactive: bool = Query(False, alias="includeInactive"),
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """
    Active products, newest first. Admins may pass includeInactive=true to
    see deactivated products as well.
    """
    active_only = not (include_inactive and current_user.role == models.UserRole.ADMIN.value)
    return crud_product.list_products(db, category=category, active_only=active_only)


@products_router.get("/low-stock", response_model=List[ProductResponse])
def get_low_stock_products(
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return list_low_stock(db)


@products_router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud_product.create_product(db, obj_in=product, user_id=current_user.id)


@products_router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return crud_product.get_or_404(db, product_id)


@products_router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product: ProductUpdate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud_product.update_product(db, id=product_id, obj_in=product)


@products_router.delete("/{product_id}")
def delete_product(
    product_id: int,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product, deleted = crud_product.remove_product(db, id=product_id)
    if deleted:
        return {"message": "Product deleted successfully", "deleted": True}
    return {"message": f"{product.name} has history and was deactivated", "deleted": False}


@products_router.patch("/{product_id}/stock", response_model=ProductResponse)
def update_stock(
    product_id: int,
    payload: StockUpdate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Apply a signed stock change; every change lands in the inventory log."""
    product = crud_inventory_log.adjust_stock(
        db,
        product_id=product_id,
        quantity=payload.quantity,
        user_id=current_user.id,
        reason=payload.reason,
    )
    logger.info(f"{current_user.username} changed stock of {product.name} by {payload.quantity}")
    return product
