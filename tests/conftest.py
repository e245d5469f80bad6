"""
Pytest fixtures for the hostel store test suite.

Provides:
- An in-memory SQLite database, rebuilt for every test
- A TestClient whose requests share the test's session
- Factories for users, students and products, plus bearer headers per role
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from decimal import Decimal
from itertools import count
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hostel_store import models  # noqa: F401  (registers tables on Base.metadata)
from hostel_store.config import settings
from hostel_store.crud.catalog import crud_category, crud_product
from hostel_store.crud.student import crud_student
from hostel_store.crud.user import crud_user
from hostel_store.database import Base, get_db
from hostel_store.main import app
from hostel_store.models import UserRole
from hostel_store.schemas.auth import UserCreate
from hostel_store.schemas.catalog import ProductCreate
from hostel_store.schemas.student import StudentCreate
from hostel_store.security import create_access_token

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

_sequence = count(1)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    crud_category.seed_defaults(session, settings.DEFAULT_CATEGORIES)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ====================
# FACTORIES
# ====================

@pytest.fixture
def make_user(db: Session):
    def _make(role: UserRole = UserRole.SELLER, username: str = None, password: str = "secret123"):
        return crud_user.create_user(
            db,
            obj_in=UserCreate(
                username=username or f"{role.value}{next(_sequence)}",
                full_name=f"Test {role.value.title()}",
                role=role,
                password=password,
            ),
        )
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def seller(make_user):
    return make_user(UserRole.SELLER)


@pytest.fixture
def accountant(make_user):
    return make_user(UserRole.ACCOUNTANT)


@pytest.fixture
def make_student(db: Session):
    def _make(balance="100.00", roll_number: str = None, **overrides):
        fields = {
            "name": "Asha Verma",
            "roll_number": roll_number or f"R-{next(_sequence):03d}",
            "standard": "10",
            "balance": Decimal(balance),
        }
        fields.update(overrides)
        return crud_student.create_student(db, obj_in=StudentCreate(**fields))
    return _make


@pytest.fixture
def make_product(db: Session, admin):
    def _make(name: str = None, price="10.00", stock: int = 20, category: str = "food", **overrides):
        fields = {
            "name": name or f"Product {next(_sequence)}",
            "category": category,
            "price": Decimal(price),
            "stock": stock,
        }
        fields.update(overrides)
        return crud_product.create_product(db, obj_in=ProductCreate(**fields), user_id=admin.id)
    return _make


# ====================
# AUTH HEADERS
# ====================

def bearer(user: models.User) -> dict:
    token = create_access_token(data={"sub": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def seller_headers(seller):
    return bearer(seller)


@pytest.fixture
def accountant_headers(accountant):
    return bearer(accountant)
