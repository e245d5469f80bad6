"""
Routers for the hostel store API
"""

from .auth import router as auth_router
from .catalog import categories_router, products_router
from .dashboard import router as dashboard_router
from .inventory import router as inventory_router
from .students import router as students_router
from .transactions import router as transactions_router

__all__ = [
    "auth_router",
    "categories_router",
    "dashboard_router",
    "inventory_router",
    "products_router",
    "students_router",
    "transactions_router",
]
