from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class RifleSetup(Base):
    __tablename__ = 'rifle_setups'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(100), nullable=False)
    manufacturer = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    caliber = Column(String(50), nullable=False)
    barrel_length = Column(Float, nullable=True)
    twist_rate = Column(String(20), nullable=True)
    scope_make = Column(String(100), nullable=True)
    scope_model = Column(String(100), nullable=True)
    scope_height = Column(Float, nullable=True)
    zero_distance = Column(Integer, nullable=False, default=100)
    zero_elevation_clicks = Column(Integer, nullable=True)
    zero_windage_clicks = Column(Integer, nullable=True)
    muzzle_velocity = Column(Integer, nullable=True)
    ballistic_coefficient = Column(Float, nullable=True)
    drag_model = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_rifle_setups_user_id', 'user_id'),
    )
