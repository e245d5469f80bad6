from datetime import datetime
from decimal import Decimal

from pydantic import Field

from hostel_store.models import StudentStatus
from hostel_store.schemas.common import APIModel, Money


class StudentBase(APIModel):
    name: str = Field(..., min_length=1, max_length=100)
    roll_number: str = Field(..., min_length=1, max_length=50)
    standard: str = Field(..., min_length=1, max_length=50)
    status: StudentStatus = StudentStatus.ACTIVE


class StudentCreate(StudentBase):
    balance: Money = Field(Decimal("0"), ge=0)


class StudentResponse(StudentBase):
    id: int
    balance: Money
    created_at: datetime


class BalanceUpdate(APIModel):
    """Signed delta: positive for a top-up, negative for a correction."""
    amount: Money
