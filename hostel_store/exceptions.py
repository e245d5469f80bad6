"""
Typed exceptions for the hostel store.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with, so routers never translate messages by hand::

    HostelStoreError
    +-- NotFoundError
    |   +-- StudentNotFoundError
    |   +-- ProductNotFoundError
    |   +-- CategoryNotFoundError
    |   +-- UserNotFoundError
    +-- ValidationError
    +-- InsufficientStockError
    +-- InsufficientBalanceError
    +-- ConflictError
    +-- PersistenceError
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class HostelStoreError(Exception):
    code: str = "HOSTEL_STORE_ERROR"
    status_code: int = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class NotFoundError(HostelStoreError):
    code = "NOT_FOUND"
    status_code = 404
    entity = "Record"

    def __init__(self, identifier: Any = None, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or f"{self.entity} not found", identifier=identifier)


class StudentNotFoundError(NotFoundError):
    code = "STUDENT_NOT_FOUND"
    entity = "Student"


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"
    entity = "Product"

    def __init__(self, identifier: Any = None, message: Optional[str] = None):
        if message is None and identifier is not None:
            message = f"Product {identifier} not found"
        super().__init__(identifier, message)


class CategoryNotFoundError(NotFoundError):
    code = "CATEGORY_NOT_FOUND"
    entity = "Category"


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    entity = "User"


class ValidationError(HostelStoreError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InsufficientStockError(HostelStoreError):
    code = "INSUFFICIENT_STOCK"
    status_code = 400

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}",
            available=available,
            requested=requested,
        )


class InsufficientBalanceError(HostelStoreError):
    code = "INSUFFICIENT_BALANCE"
    status_code = 400

    def __init__(self, balance: Decimal, required: Decimal):
        self.balance = balance
        self.required = required
        super().__init__("Insufficient balance", balance=balance, required=required)


class ConflictError(HostelStoreError):
    code = "CONFLICT"
    status_code = 409


class PersistenceError(HostelStoreError):
    code = "PERSISTENCE_ERROR"
    status_code = 500
