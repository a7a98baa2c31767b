from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Image(Base):
    """Uploaded photo; bytes live in the blob store under ``file_name``."""
    __tablename__ = 'images'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    file_name = Column(String(255), nullable=False)
    original_file_name = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    thumbnail_file_name = Column(String(255), nullable=True)
    caption = Column(String(500), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    is_processed = Column(Boolean, nullable=False, default=False)
    rifle_setup_id = Column(Integer, ForeignKey('rifle_setups.id', ondelete='CASCADE'), nullable=True)
    range_session_id = Column(Integer, ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=True)
    group_entry_id = Column(Integer, ForeignKey('group_entries.id', ondelete='CASCADE'), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN rifle_setup_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN range_session_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN group_entry_id IS NULL THEN 0 ELSE 1 END) = 1",
            name='ck_images_single_parent',
        ),
        Index('ix_images_user_id', 'user_id'),
        Index('ix_images_file_name', 'file_name'),
    )
