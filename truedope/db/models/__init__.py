"""
Domain-split SQLAlchemy models with an aggregator.

This package exposes `Base`, `now_utc`, and all ORM classes so callers can
write ``from truedope.db import models`` and reach every table.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User
from .preferences import UserPreferences
from .locations import SavedLocation
from .rifles import RifleSetup
from .ammunition import Ammunition, AmmoLot
from .sessions import (
    RangeSession,
    ChronoSession,
    VelocityReading,
    DopeEntry,
    GroupEntry,
    GroupMeasurement,
)
from .images import Image
from .audit import AdminAuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # users
    "User",
    "UserPreferences",
    # equipment
    "SavedLocation",
    "RifleSetup",
    "Ammunition",
    "AmmoLot",
    # sessions
    "RangeSession",
    "ChronoSession",
    "VelocityReading",
    "DopeEntry",
    "GroupEntry",
    "GroupMeasurement",
    # media
    "Image",
    # audit
    "AdminAuditLog",
]
