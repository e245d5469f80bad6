"""
Student CRUD: roll-number lookup, balance top-ups, guarded deletes.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hostel_store.crud.base import CRUDBase
from hostel_store.exceptions import ConflictError, InsufficientBalanceError, StudentNotFoundError
from hostel_store.models import Student, StudentStatus, Transaction
from hostel_store.schemas.student import StudentCreate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class CRUDStudent(CRUDBase[Student]):
    not_found_error = StudentNotFoundError

    def __init__(self):
        super().__init__(Student)

    def get_by_roll_number(self, db: Session, roll_number: str, *, for_update: bool = False) -> Optional[Student]:
        return self.get_by(db, roll_number=roll_number, for_update=for_update)

    def resolve(self, db: Session, identifier: str, *, for_update: bool = False) -> Student:
        """
        Find a student by primary id, falling back to roll number.

        A numeric identifier is tried as an id first, so a roll number that
        looks like an existing id resolves to that id's student.
        """
        identifier = str(identifier).strip()
        student = None
        if identifier.isdigit():
            student = self.get(db, int(identifier), for_update=for_update)
        if student is None:
            student = self.get_by_roll_number(db, identifier, for_update=for_update)
        if student is None:
            raise StudentNotFoundError(identifier)
        return student

    def list_students(self, db: Session) -> List[Student]:
        return self.get_multi(db, order_by=[Student.created_at.desc(), Student.id.desc()], limit=None)

    def create_student(self, db: Session, *, obj_in: StudentCreate) -> Student:
        if self.get_by_roll_number(db, obj_in.roll_number):
            raise ConflictError(f"Student with roll number '{obj_in.roll_number}' already exists")
        data = obj_in.model_dump()
        data["balance"] = Decimal(data["balance"]).quantize(CENT)
        data["status"] = StudentStatus(data["status"]).value
        return self.create(db, obj_in=data)

    def adjust_balance(self, db: Session, *, id: int, amount: Decimal) -> Student:
        """Apply a signed top-up; the balance may never go below zero."""
        student = self.get_or_404(db, id, for_update=True)
        new_balance = (student.balance + Decimal(amount)).quantize(CENT)
        if new_balance < 0:
            db.rollback()
            logger.warning(f"Rejected balance change {amount} for student {student.roll_number}")
            raise InsufficientBalanceError(balance=student.balance, required=-Decimal(amount))
        student = self.apply(db, student, {"balance": new_balance})
        logger.info(f"Balance of {student.roll_number} changed by {amount} to {new_balance}")
        return student

    def remove_student(self, db: Session, *, id: int) -> Student:
        student = self.get_or_404(db, id)
        referenced = db.execute(
            select(func.count(Transaction.id)).where(Transaction.student_id == id)
        ).scalar_one()
        if referenced:
            raise ConflictError(f"Student {student.roll_number} has {referenced} transactions and cannot be deleted")
        return self.remove(db, id=id)


crud_student = CRUDStudent()
