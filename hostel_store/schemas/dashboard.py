"""
Read-side schemas: analytics, dashboard stats and inventory log listings.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from hostel_store.models import InventoryAction
from hostel_store.schemas.common import APIModel, Money


class DateRange(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class Analytics(APIModel):
    total_revenue: Money
    today_sales: Money
    total_transactions: int
    avg_transaction: Money


class DashboardStats(APIModel):
    total_students: int
    total_products: int
    today_sales: Money
    today_transactions: int
    low_stock_count: int


class ProductSummary(APIModel):
    name: str
    category: Optional[str] = None


class InventoryLogResponse(APIModel):
    id: int
    product_id: int
    action: InventoryAction
    quantity_change: int
    previous_stock: int
    new_stock: int
    reason: Optional[str] = None
    user_id: int
    created_at: datetime
    product: Optional[ProductSummary] = None
