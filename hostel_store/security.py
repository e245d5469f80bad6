"""
Authentication and authorization:
- Password hashing via passlib[bcrypt]
- Stateless JWT bearer tokens via python-jose
- Role checks as FastAPI dependencies, evaluated on every request
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging

from hostel_store.config import settings
from hostel_store.database import get_db
from hostel_store import models

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

security = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> models.User:
    """Resolve the user behind the bearer token of this request."""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    username = payload.get("sub")
    if username is None:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid authentication credentials")

    user = db.execute(select(models.User).where(models.User.username == username)).scalar_one_or_none()
    if user is None:
        logger.warning(f"User not found: {username}")
        raise _unauthorized("User not found")
    if not user.is_active:
        logger.warning(f"Inactive user presented a token: {username}")
        raise _unauthorized("Inactive user")
    return user


def require_roles(*roles: models.UserRole) -> Callable[..., models.User]:
    """
    Dependency factory allowing the given roles; admins pass every check.

        @router.post("/", dependencies=[Depends(require_roles(UserRole.SELLER))])
    """
    allowed = {models.UserRole.ADMIN.value} | {models.UserRole(r).value for r in roles}

    def checker(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in allowed:
            logger.warning(
                f"User {current_user.username} ({current_user.role}) denied; requires {sorted(allowed)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient privileges",
            )
        return current_user

    return checker


require_admin = require_roles()
require_seller = require_roles(models.UserRole.SELLER)
require_accountant = require_roles(models.UserRole.ACCOUNTANT)
require_staff = require_roles(models.UserRole.SELLER, models.UserRole.ACCOUNTANT)
