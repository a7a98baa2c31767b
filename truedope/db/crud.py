"""
CRUD operations for ORM models.

Thin facade over the per-domain repositories for users and admin audit
logs.
"""
import uuid
from typing import Optional
from sqlalchemy.orm import Session

from . import schemas
from .repositories import users as repo_users
from .repositories import audits as repo_audits


# Users (facade delegates to repository)
def get_user(db: Session, user_id: uuid.UUID):
    return repo_users.get_user(db, user_id)


def get_user_by_email(db: Session, email: str):
    return repo_users.get_user_by_email(db, email)


def user_exists(db: Session, user_id: uuid.UUID) -> bool:
    return repo_users.user_exists(db, user_id)


def create_user(db: Session, user: schemas.UserCreate):
    return repo_users.create_user(db, user)


# Admin audit logs (facade delegates to repository)
def create_admin_audit_log(
    db: Session,
    audit_log: schemas.AdminAuditLogCreate,
    *,
    admin_user_id: uuid.UUID,
):
    return repo_audits.create_admin_audit_log(db, audit_log, admin_user_id)


def get_admin_audit_logs(
    db: Session,
    *,
    admin_user_id: Optional[uuid.UUID] = None,
    target_user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    return repo_audits.get_admin_audit_logs(
        db,
        admin_user_id=admin_user_id,
        target_user_id=target_user_id,
        action_type=action_type,
        status=status,
        skip=skip,
        limit=limit,
    )
