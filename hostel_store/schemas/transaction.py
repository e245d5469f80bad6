from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from hostel_store.models import TransactionStatus
from hostel_store.schemas.common import APIModel, Money


class SaleItem(APIModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    price: Money = Field(..., ge=0, decimal_places=2, description="Unit price charged for this line")


class TransactionCreate(APIModel):
    student_id: str = Field(..., min_length=1, description="Student id or roll number")
    items: List[SaleItem] = Field(..., min_length=1)

    @field_validator("student_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        return str(v) if isinstance(v, int) else v


class TransactionItemResponse(APIModel):
    product_id: int
    quantity: int
    price: Money


class StudentSummary(APIModel):
    name: str
    roll_number: str


class TransactionResponse(APIModel):
    id: int
    student_id: int
    seller_id: int
    items: List[TransactionItemResponse]
    total_amount: Money
    status: TransactionStatus
    created_at: datetime
    student: Optional[StudentSummary] = None
