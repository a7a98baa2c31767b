from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Float, Numeric, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Ammunition(Base):
    __tablename__ = 'ammunition'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    manufacturer = Column(String(100), nullable=False)
    name = Column(String(100), nullable=False)
    caliber = Column(String(50), nullable=False)
    grain = Column(Float, nullable=False)
    bullet_type = Column(String(50), nullable=True)
    cost_per_round = Column(Numeric(10, 4), nullable=True)
    ballistic_coefficient = Column(Float, nullable=True)
    drag_model = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_ammunition_user_id', 'user_id'),
    )


class AmmoLot(Base):
    __tablename__ = 'ammo_lots'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    ammunition_id = Column(Integer, ForeignKey('ammunition.id', ondelete='CASCADE'), nullable=False)
    lot_number = Column(String(50), nullable=False)
    purchase_date = Column(Date, nullable=True)
    initial_quantity = Column(Integer, nullable=True)
    purchase_price = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    ammunition = relationship("Ammunition")

    __table_args__ = (
        UniqueConstraint('ammunition_id', 'lot_number', name='uq_ammo_lots_ammunition_lot_number'),
        Index('ix_ammo_lots_user_id', 'user_id'),
    )

    @property
    def cost_per_round(self):
        """Purchase price spread over the initial quantity, when both are known."""
        if self.purchase_price is None or not self.initial_quantity:
            return None
        return Decimal(self.purchase_price) / Decimal(self.initial_quantity)
