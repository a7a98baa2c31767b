from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class UserPreferences(Base):
    __tablename__ = 'user_preferences'
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    distance_unit = Column(String(10), nullable=False, default='yards')
    adjustment_unit = Column(String(10), nullable=False, default='mil')
    temperature_unit = Column(String(10), nullable=False, default='fahrenheit')
    pressure_unit = Column(String(10), nullable=False, default='inhg')
    velocity_unit = Column(String(10), nullable=False, default='fps')
    theme = Column(String(10), nullable=False, default='system')
    group_size_method = Column(String(10), nullable=False, default='ctc')
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)
