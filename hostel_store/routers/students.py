from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hostel_store import models
from hostel_store.crud.student import crud_student
from hostel_store.database import get_db
from hostel_store.exceptions import StudentNotFoundError
from hostel_store.schemas.student import BalanceUpdate, StudentCreate, StudentResponse
from hostel_store.security import require_accountant, require_staff

router = APIRouter(prefix="/students", tags=["students"])


@router.get("", response_model=List[StudentResponse])
def list_students(
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return crud_student.list_students(db)


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(
    student: StudentCreate,
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    return crud_student.create_student(db, obj_in=student)


@router.get("/roll/{roll_number}", response_model=StudentResponse)
def get_student_by_roll_number(
    roll_number: str,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Seller lookup at the counter."""
    student = crud_student.get_by_roll_number(db, roll_number)
    if student is None:
        raise StudentNotFoundError(roll_number)
    return student


@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: int,
    current_user: models.User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return crud_student.get_or_404(db, student_id)


@router.patch("/{student_id}/balance", response_model=StudentResponse)
def update_balance(
    student_id: int,
    payload: BalanceUpdate,
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    """Top up (positive amount) or correct (negative amount) a balance."""
    return crud_student.adjust_balance(db, id=student_id, amount=payload.amount)


@router.delete("/{student_id}")
def delete_student(
    student_id: int,
    current_user: models.User = Depends(require_accountant),
    db: Session = Depends(get_db),
):
    crud_student.remove_student(db, id=student_id)
    return {"message": "Student deleted successfully"}
