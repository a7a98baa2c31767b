"""
Admin audit log repository functions.

Implements create and query functions for admin audit logs.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from truedope.db import schemas, models


def create_admin_audit_log(db: Session, audit_log: schemas.AdminAuditLogCreate, admin_user_id: uuid.UUID):
    data = audit_log.model_dump()
    metadata_payload = data.pop('metadata', None)
    db_audit_log = models.AdminAuditLog(
        **data,
        admin_user_id=admin_user_id,
        metadata_json=metadata_payload,
    )
    db.add(db_audit_log)
    db.commit()
    db.refresh(db_audit_log)
    return db_audit_log


def get_admin_audit_logs(
    db: Session,
    admin_user_id: Optional[uuid.UUID] = None,
    target_user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(models.AdminAuditLog)
    if admin_user_id:
        query = query.filter(models.AdminAuditLog.admin_user_id == admin_user_id)
    if target_user_id:
        query = query.filter(models.AdminAuditLog.target_user_id == target_user_id)
    if action_type:
        query = query.filter(models.AdminAuditLog.action_type == action_type)
    if status:
        query = query.filter(models.AdminAuditLog.status == status)
    return query.order_by(models.AdminAuditLog.created_at.desc()).offset(skip).limit(limit).all()
