"""
Category and product schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from hostel_store.config import settings
from hostel_store.schemas.common import APIModel, Money


def reject_null(value):
    """Partial updates may omit a required field but never set it to null."""
    if value is None:
        raise ValueError("may be omitted but not set to null")
    return value


# Category Schemas
class CategoryCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)


class CategoryResponse(CategoryCreate):
    id: int
    created_at: datetime


# Product Schemas
class ProductBase(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, description="Category name")
    price: Money = Field(..., ge=0, decimal_places=2)
    low_stock_threshold: int = Field(settings.DEFAULT_LOW_STOCK_THRESHOLD, ge=0)
    barcode: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True


class ProductCreate(ProductBase):
    stock: int = Field(0, ge=0, description="Opening stock, logged as a restock")


class ProductUpdate(APIModel):
    # stock is absent on purpose: it only moves through stock adjustments
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = None
    price: Optional[Money] = Field(None, ge=0, decimal_places=2)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    barcode: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "category", "price", "low_stock_threshold", "is_active")
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)


class ProductResponse(ProductBase):
    id: int
    stock: int
    is_low_stock: bool
    created_at: datetime


class StockUpdate(APIModel):
    quantity: int = Field(..., description="Signed change applied to current stock")
    reason: Optional[str] = None
