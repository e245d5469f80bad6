"""
Database configuration:
- pool_pre_ping for server databases
- SQLite allowed across threads (TestClient, uvicorn workers)
- One session per request through get_db
"""
import logging
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from hostel_store.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(url: str) -> Engine:
    """Create an engine for ``url`` with the options its dialect needs."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    # Supabase only accepts SSL connections
    if "supabase" in url and "sslmode" not in url:
        url += "?sslmode=require"
        logger.info("Added sslmode=require to DATABASE_URL")

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=300,
        pool_timeout=30,
        echo=False,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection(bind: Engine = None) -> tuple[bool, str]:
    """Run ``SELECT 1`` against the database."""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, "Database connection successful"
    except OperationalError as e:
        return False, f"Database connection failed: {e}"


def init_db(db: Session) -> None:
    """Create tables and seed reference data (categories, bootstrap admin)."""
    from hostel_store import models
    from hostel_store.crud.catalog import crud_category
    from hostel_store.crud.user import crud_user

    models.Base.metadata.create_all(bind=db.get_bind())
    crud_category.seed_defaults(db, settings.DEFAULT_CATEGORIES)
    crud_user.ensure_admin(
        db,
        username=settings.DEFAULT_ADMIN_USERNAME,
        password=settings.DEFAULT_ADMIN_PASSWORD,
    )
