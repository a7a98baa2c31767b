import uuid
from sqlalchemy import Column, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class AdminAuditLog(Base):
    __tablename__ = 'admin_audit_logs'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admin_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    action_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    target_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    target_type = Column(Text, nullable=True)
    target_id = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    # Use a non-reserved Python attribute name while keeping DB column name 'metadata'
    metadata_json = Column('metadata', JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_admin_audit_logs_admin_user_id_created_at', 'admin_user_id', 'created_at'),
        Index('ix_admin_audit_logs_target_user_id_created_at', 'target_user_id', 'created_at'),
        Index('ix_admin_audit_logs_action_type', 'action_type'),
    )
