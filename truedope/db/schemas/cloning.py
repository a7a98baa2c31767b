"""Request/response models for the admin clone-user-data operations."""
import uuid
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field


class CloneUserDataRequest(BaseModel):
    source_user_id: uuid.UUID
    target_user_id: uuid.UUID
    confirm_overwrite: bool = False


class ClonePreviewRequest(BaseModel):
    source_user_id: uuid.UUID
    target_user_id: uuid.UUID


class CloneStatistics(BaseModel):
    """Per-kind copied/deleted counters accumulated across one clone."""

    saved_locations_copied: int = 0
    rifle_setups_copied: int = 0
    ammunition_copied: int = 0
    ammo_lots_copied: int = 0
    range_sessions_copied: int = 0
    chrono_sessions_copied: int = 0
    velocity_readings_copied: int = 0
    dope_entries_copied: int = 0
    group_entries_copied: int = 0
    group_measurements_copied: int = 0
    images_copied: int = 0
    user_preferences_copied: bool = False
    image_bytes_copied: int = 0

    saved_locations_deleted: int = 0
    rifle_setups_deleted: int = 0
    ammunition_deleted: int = 0
    ammo_lots_deleted: int = 0
    range_sessions_deleted: int = 0
    chrono_sessions_deleted: int = 0
    velocity_readings_deleted: int = 0
    dope_entries_deleted: int = 0
    group_entries_deleted: int = 0
    group_measurements_deleted: int = 0
    images_deleted: int = 0
    user_preferences_deleted: bool = False
    image_blobs_deleted: int = 0

    blob_delete_failures: int = 0
    image_copy_failures: int = 0
    rows_skipped: Dict[str, int] = Field(default_factory=dict)

    def record_copied(self, kind: str, count: int) -> None:
        field = f"{kind}_copied"
        if isinstance(getattr(self, field), bool):
            setattr(self, field, count > 0)
        else:
            setattr(self, field, getattr(self, field) + count)

    def record_deleted(self, kind: str, count: int) -> None:
        field = f"{kind}_deleted"
        if isinstance(getattr(self, field), bool):
            setattr(self, field, count > 0)
        else:
            setattr(self, field, getattr(self, field) + count)

    def record_skipped(self, kind: str, count: int = 1) -> None:
        self.rows_skipped[kind] = self.rows_skipped.get(kind, 0) + count


class DataCounts(BaseModel):
    saved_locations: int = 0
    rifle_setups: int = 0
    ammunition: int = 0
    ammo_lots: int = 0
    range_sessions: int = 0
    chrono_sessions: int = 0
    velocity_readings: int = 0
    dope_entries: int = 0
    group_entries: int = 0
    group_measurements: int = 0
    images: int = 0
    has_user_preferences: bool = False


class ClonePreviewResponse(BaseModel):
    source_user_id: uuid.UUID
    source_user_email: str
    target_user_id: uuid.UUID
    target_user_email: str
    source_counts: DataCounts
    target_counts: DataCounts


class CloneUserDataResponse(BaseModel):
    success: bool
    source_user_id: uuid.UUID
    target_user_id: uuid.UUID
    statistics: CloneStatistics
    completed_at: datetime
    duration_ms: int
    message: Optional[str] = None
