"""
API dependency helpers.

Resolves the calling user from oauth2-proxy headers and gates admin routes.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from truedope.db import crud, models
from truedope.db.database import get_db
from truedope.storage import S3StorageService


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def get_current_user(
    db: Session = Depends(get_db),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> models.User:
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = crud.get_user_by_email(db, email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


@lru_cache(maxsize=1)
def _storage_singleton() -> S3StorageService:
    return S3StorageService()


def get_storage():
    """Blob store dependency; tests override it with an in-memory fake."""
    return _storage_singleton()
