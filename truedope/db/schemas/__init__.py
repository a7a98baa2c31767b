"""
Domain-split Pydantic schemas with an aggregator.

Callers use ``from truedope.db import schemas`` and reach every name here.
"""

from .users import UserBase, UserCreate, User
from .audits import AdminAuditLogBase, AdminAuditLogCreate, AdminAuditLog
from .cloning import (
    CloneUserDataRequest,
    ClonePreviewRequest,
    CloneStatistics,
    DataCounts,
    ClonePreviewResponse,
    CloneUserDataResponse,
)
from .images import OrphanedImage, OrphanedImagesResponse, DeleteOrphanedImagesResponse, ImageStatsResponse

__all__ = [
    # users
    "UserBase",
    "UserCreate",
    "User",
    # audit
    "AdminAuditLogBase",
    "AdminAuditLogCreate",
    "AdminAuditLog",
    # cloning
    "CloneUserDataRequest",
    "ClonePreviewRequest",
    "CloneStatistics",
    "DataCounts",
    "ClonePreviewResponse",
    "CloneUserDataResponse",
    # images
    "OrphanedImage",
    "OrphanedImagesResponse",
    "DeleteOrphanedImagesResponse",
    "ImageStatsResponse",
]
