"""
Authentication router: token login and user management.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from hostel_store import models
from hostel_store.crud.user import crud_user
from hostel_store.database import get_db
from hostel_store.schemas.auth import TokenResponse, UserCreate, UserResponse
from hostel_store.security import create_access_token, get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """OAuth2 compatible token login; the token carries the user's role."""
    user = crud_user.authenticate(db, form_data.username, form_data.password)
    if user is None:
        logger.warning(f"Failed login attempt for username: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": user.username, "role": user.role})
    logger.info(f"User {user.username} logged in as {user.role}")
    return TokenResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: models.User = Depends(get_current_user)):
    return current_user


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = crud_user.create_user(db, obj_in=user_in)
    logger.info(f"Admin {current_user.username} created {user.role} user {user.username}")
    return user


@router.get("/users", response_model=List[UserResponse])
def list_users(
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud_user.list_users(db)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return crud_user.get_or_404(db, user_id)
