import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hostel_store.crud.base import CRUDBase
from hostel_store.exceptions import ConflictError, UserNotFoundError
from hostel_store.models import User, UserRole
from hostel_store.schemas.auth import UserCreate
from hostel_store.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class CRUDUser(CRUDBase[User]):
    not_found_error = UserNotFoundError

    def __init__(self):
        super().__init__(User)

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        return self.get_by(db, username=username)

    def authenticate(self, db: Session, username: str, password: str) -> Optional[User]:
        """The active user owning these credentials, or None."""
        user = self.get_by_username(db, username)
        if user is None or not verify_password(password, user.password_hash):
            return None
        if not user.is_active:
            return None
        return user

    def create_user(self, db: Session, *, obj_in: UserCreate) -> User:
        if self.get_by_username(db, obj_in.username):
            raise ConflictError("Username already registered")
        data = obj_in.model_dump(exclude={"password"})
        data["role"] = UserRole(data["role"]).value
        data["password_hash"] = get_password_hash(obj_in.password)
        return self.create(db, obj_in=data)

    def list_users(self, db: Session) -> List[User]:
        return self.get_multi(db, order_by=[User.created_at.desc(), User.id.desc()], limit=None)

    def ensure_admin(self, db: Session, *, username: str, password: str) -> Optional[User]:
        """Create the bootstrap admin when no users exist yet."""
        if db.execute(select(func.count(User.id))).scalar_one():
            return None
        admin = self.create(
            db,
            obj_in={
                "username": username,
                "password_hash": get_password_hash(password),
                "full_name": "System Administrator",
                "role": UserRole.ADMIN.value,
            },
        )
        logger.info(f"Created bootstrap admin user '{username}'")
        return admin


crud_user = CRUDUser()
