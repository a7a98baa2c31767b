"""Range session models and the per-session records hanging off them."""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Float,
    Date,
    Time,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class RangeSession(Base):
    __tablename__ = 'range_sessions'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    rifle_setup_id = Column(Integer, ForeignKey('rifle_setups.id', ondelete='RESTRICT'), nullable=False)
    saved_location_id = Column(Integer, ForeignKey('saved_locations.id', ondelete='SET NULL'), nullable=True)
    session_date = Column(Date, nullable=False)
    session_time = Column(Time, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_name = Column(String(255), nullable=True)
    temperature = Column(Float, nullable=True)
    humidity = Column(Float, nullable=True)
    wind_speed = Column(Float, nullable=True)
    wind_direction = Column(Float, nullable=True)
    pressure = Column(Float, nullable=True)
    density_altitude = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    rifle_setup = relationship("RifleSetup")
    saved_location = relationship("SavedLocation")

    __table_args__ = (
        Index('ix_range_sessions_user_id_session_date', 'user_id', 'session_date'),
    )


class ChronoSession(Base):
    __tablename__ = 'chrono_sessions'
    id = Column(Integer, primary_key=True, autoincrement=True)
    range_session_id = Column(Integer, ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=False, unique=True)
    ammunition_id = Column(Integer, ForeignKey('ammunition.id', ondelete='RESTRICT'), nullable=False)
    ammo_lot_id = Column(Integer, ForeignKey('ammo_lots.id', ondelete='SET NULL'), nullable=True)
    barrel_temperature = Column(Float, nullable=True)
    number_of_rounds = Column(Integer, nullable=False, default=0)
    average_velocity = Column(Float, nullable=True)
    high_velocity = Column(Float, nullable=True)
    low_velocity = Column(Float, nullable=True)
    standard_deviation = Column(Float, nullable=True)
    extreme_spread = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    range_session = relationship("RangeSession")


class VelocityReading(Base):
    __tablename__ = 'velocity_readings'
    id = Column(Integer, primary_key=True, autoincrement=True)
    chrono_session_id = Column(Integer, ForeignKey('chrono_sessions.id', ondelete='CASCADE'), nullable=False)
    shot_number = Column(Integer, nullable=False)
    velocity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('chrono_session_id', 'shot_number', name='uq_velocity_readings_chrono_shot'),
    )


class DopeEntry(Base):
    """Elevation/windage correction logged at a distance."""
    __tablename__ = 'dope_entries'
    id = Column(Integer, primary_key=True, autoincrement=True)
    range_session_id = Column(Integer, ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=False)
    ammunition_id = Column(Integer, ForeignKey('ammunition.id', ondelete='SET NULL'), nullable=True)
    ammo_lot_id = Column(Integer, ForeignKey('ammo_lots.id', ondelete='SET NULL'), nullable=True)
    distance = Column(Integer, nullable=False)
    elevation_mils = Column(Float, nullable=False)
    windage_mils = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('range_session_id', 'distance', name='uq_dope_entries_session_distance'),
    )


class GroupEntry(Base):
    __tablename__ = 'group_entries'
    id = Column(Integer, primary_key=True, autoincrement=True)
    range_session_id = Column(Integer, ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=False)
    ammunition_id = Column(Integer, ForeignKey('ammunition.id', ondelete='SET NULL'), nullable=True)
    ammo_lot_id = Column(Integer, ForeignKey('ammo_lots.id', ondelete='SET NULL'), nullable=True)
    group_number = Column(Integer, nullable=False, default=1)
    distance = Column(Integer, nullable=False)
    number_of_shots = Column(Integer, nullable=False)
    group_size_moa = Column(Float, nullable=True)
    mean_radius_moa = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)


class GroupMeasurement(Base):
    """Hole-position analysis of a shot group, optionally tied to its photos."""
    __tablename__ = 'group_measurements'
    id = Column(Integer, primary_key=True, autoincrement=True)
    group_entry_id = Column(Integer, ForeignKey('group_entries.id', ondelete='CASCADE'), nullable=False, unique=True)
    hole_positions = Column(JSONB, nullable=False, default=list)
    bullet_diameter = Column(Float, nullable=False)
    extreme_spread_ctc = Column(Float, nullable=True)
    extreme_spread_ete = Column(Float, nullable=True)
    mean_radius = Column(Float, nullable=True)
    horizontal_spread_ctc = Column(Float, nullable=True)
    horizontal_spread_ete = Column(Float, nullable=True)
    vertical_spread_ctc = Column(Float, nullable=True)
    vertical_spread_ete = Column(Float, nullable=True)
    radial_std_dev = Column(Float, nullable=True)
    horizontal_std_dev = Column(Float, nullable=True)
    vertical_std_dev = Column(Float, nullable=True)
    cep50 = Column(Float, nullable=True)
    poi_offset_x = Column(Float, nullable=True)
    poi_offset_y = Column(Float, nullable=True)
    calibration_method = Column(String(20), nullable=False, default='manual')
    measurement_confidence = Column(Float, nullable=True)
    original_image_id = Column(Integer, ForeignKey('images.id', ondelete='SET NULL'), nullable=True)
    annotated_image_id = Column(Integer, ForeignKey('images.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)
