"""
Base CRUD operations with SQLAlchemy 2.x patterns.

Write methods accept ``commit=False`` so multi-step workflows can compose
several writes and commit them once.
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_store.database import Base
from hostel_store.exceptions import ConflictError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    not_found_error: Type[NotFoundError] = NotFoundError

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: int, *, for_update: bool = False) -> Optional[ModelType]:
        """Get record by ID, optionally locking the row until commit."""
        stmt = select(self.model).where(self.model.id == id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._scalar(db, stmt)

    def get_or_404(self, db: Session, id: int, *, for_update: bool = False) -> ModelType:
        obj = self.get(db, id, for_update=for_update)
        if obj is None:
            raise self.not_found_error(id)
        return obj

    def get_by(self, db: Session, *, for_update: bool = False, **unique_key: Any) -> Optional[ModelType]:
        """Get record by a unique column, e.g. ``get_by(db, roll_number="R-12")``."""
        stmt = select(self.model).filter_by(**unique_key)
        if for_update:
            stmt = stmt.with_for_update()
        return self._scalar(db, stmt)

    def get_multi(
        self,
        db: Session,
        *,
        filters: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[ModelType]:
        """Get records matching ``filters`` (SQL expressions) in ``order_by`` order."""
        stmt = select(self.model).where(*filters).order_by(*order_by).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return list(db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting multiple {self.model.__name__}: {e}")
            raise PersistenceError(f"Failed to load {self.model.__name__} records") from e

    def create(self, db: Session, *, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        obj = self.model(**obj_in)
        db.add(obj)
        self._flush_or_commit(db, commit, f"creating {self.model.__name__}")
        return obj

    def update(self, db: Session, *, id: int, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """Apply the partial field mapping ``obj_in`` to record ``id``."""
        obj = self.get_or_404(db, id)
        return self.apply(db, obj, obj_in, commit=commit)

    def apply(self, db: Session, obj: ModelType, obj_in: Dict[str, Any], *, commit: bool = True) -> ModelType:
        for field, value in obj_in.items():
            setattr(obj, field, value)
        self._flush_or_commit(db, commit, f"updating {self.model.__name__} {obj.id}")
        return obj

    def remove(self, db: Session, *, id: int, commit: bool = True) -> ModelType:
        obj = self.get_or_404(db, id)
        db.delete(obj)
        self._flush_or_commit(db, commit, f"deleting {self.model.__name__} {id}")
        return obj

    def _scalar(self, db: Session, stmt) -> Optional[ModelType]:
        try:
            return db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__}: {e}")
            raise PersistenceError(f"Failed to load {self.model.__name__}") from e

    def _flush_or_commit(self, db: Session, commit: bool, action: str) -> None:
        try:
            if commit:
                db.commit()
            else:
                db.flush()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Integrity error {action}: {e}")
            raise ConflictError(f"{self.model.__name__} conflicts with an existing record") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error {action}: {e}")
            raise PersistenceError(f"Failed {action}") from e
