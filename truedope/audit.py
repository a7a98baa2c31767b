"""
Audit logging helpers and enums.

Centralized helpers to persist normalized admin audit records with a
consistent schema; includes convenience wrappers per admin action.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from truedope.db import crud, schemas


class AuditAction(str, Enum):
    # Account data
    USER_DATA_CLONED = "user_data_cloned"
    # Image maintenance
    ORPHANED_IMAGES_DELETED = "orphaned_images_deleted"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    admin_user_id: uuid.UUID,
    target_user_id: Optional[uuid.UUID] = None,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> schemas.AdminAuditLog:
    """Central audit logging helper.

    Commits on its own; callers append only after their own work is
    committed.
    """
    # Ensure we persist pure string values, not Enum reprs (avoid 'AuditAction.XYZ')
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AdminAuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_user_id=target_user_id,
        target_type=target_type,
        target_id=target_id,
        reason=reason,
        metadata=metadata or {},
    )
    return crud.create_admin_audit_log(db, audit_log, admin_user_id=admin_user_id)


__all__ = ["AuditAction", "AuditStatus", "log", "log_user_data_clone", "log_orphaned_images_deleted"]


def log_user_data_clone(
    db: Session,
    *,
    admin_user_id: uuid.UUID,
    source_user_id: uuid.UUID,
    target_user_id: uuid.UUID,
    statistics: schemas.CloneStatistics,
    duration_ms: int,
):
    return log(
        db,
        action=AuditAction.USER_DATA_CLONED,
        admin_user_id=admin_user_id,
        target_user_id=target_user_id,
        target_type="user",
        target_id=str(target_user_id),
        metadata={
            "source_user_id": str(source_user_id),
            "statistics": statistics.model_dump(mode="json"),
            "duration_ms": duration_ms,
        },
    )


def log_orphaned_images_deleted(
    db: Session,
    *,
    admin_user_id: uuid.UUID,
    deleted_count: int,
    freed_bytes: int,
    error_count: int = 0,
):
    return log(
        db,
        action=AuditAction.ORPHANED_IMAGES_DELETED,
        status=AuditStatus.SUCCESS if error_count == 0 else AuditStatus.FAILURE,
        admin_user_id=admin_user_id,
        target_type="image_bucket",
        metadata={
            "deleted_count": deleted_count,
            "freed_bytes": freed_bytes,
            "error_count": error_count,
        },
    )
