"""
Image maintenance service: bucket statistics, and finding and removing blobs
in the image bucket that no Image row references (left behind by deleted
rows or rolled-back clones).
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from truedope.audit import log_orphaned_images_deleted
from truedope.cloning.locks import TargetUserLocks, get_target_locks
from truedope.db import models, schemas
from truedope.storage import StorageError
from truedope.utils.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class OrphanSweepBlockedError(Exception):
    """A clone is writing image blobs whose rows are not committed yet."""


def format_file_size(num_bytes: int) -> str:
    if num_bytes < 0:
        return "0 B"
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    text = f"{size:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


class ImageMaintenanceService:
    """Service class for image bucket statistics and orphaned-blob sweeps."""

    def __init__(
        self,
        db: Session,
        storage,
        settings: Optional[Settings] = None,
        locks: Optional[TargetUserLocks] = None,
    ):
        self.db = db
        self.storage = storage
        self.settings = settings or get_settings()
        self.locks = locks or get_target_locks()

    def _referenced_keys(self) -> Set[str]:
        rows = self.db.execute(select(models.Image.file_name, models.Image.thumbnail_file_name)).all()
        keys: Set[str] = set()
        for file_name, thumbnail_file_name in rows:
            keys.add(file_name)
            if thumbnail_file_name:
                keys.add(thumbnail_file_name)
        return keys

    def get_image_stats(self) -> schemas.ImageStatsResponse:
        total_images = self.db.execute(select(func.count()).select_from(models.Image)).scalar_one()
        missing_thumbnails = self.db.execute(
            select(func.count())
            .select_from(models.Image)
            .where(
                or_(
                    models.Image.thumbnail_file_name.is_(None),
                    models.Image.thumbnail_file_name == "",
                    models.Image.is_processed.is_(False),
                )
            )
        ).scalar_one()
        storage_size = sum(obj.size for obj in self.storage.list_objects(self.settings.image_bucket))
        orphaned = self.find_orphaned_images()
        return schemas.ImageStatsResponse(
            total_images=total_images,
            storage_size_bytes=storage_size,
            storage_size_formatted=format_file_size(storage_size),
            missing_thumbnails=missing_thumbnails,
            orphaned_file_count=orphaned.total_count,
        )

    def find_orphaned_images(self) -> schemas.OrphanedImagesResponse:
        """Unreferenced objects older than the configured minimum age, largest first."""
        referenced = self._referenced_keys()
        objects = self.storage.list_objects(self.settings.image_bucket)
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.settings.orphan_min_age_s)
        orphans: List[schemas.OrphanedImage] = []
        too_recent = 0
        for obj in objects:
            if obj.key in referenced:
                continue
            if obj.last_modified is not None and obj.last_modified > cutoff:
                too_recent += 1
                continue
            orphans.append(schemas.OrphanedImage(object_key=obj.key, size=obj.size, last_modified=obj.last_modified))
        orphans.sort(key=lambda o: o.size, reverse=True)
        logger.info(
            "Found %d orphaned images out of %d objects (%d unreferenced but too recent)",
            len(orphans),
            len(objects),
            too_recent,
        )
        return schemas.OrphanedImagesResponse(
            orphaned_images=orphans,
            total_count=len(orphans),
            total_size=sum(o.size for o in orphans),
        )

    def delete_orphaned_images(self, admin_user_id: uuid.UUID) -> schemas.DeleteOrphanedImagesResponse:
        if self.locks.any_held():
            raise OrphanSweepBlockedError("A user data clone is in progress; retry once it finishes")
        found = self.find_orphaned_images()
        deleted = 0
        freed = 0
        errors: List[str] = []
        for orphan in found.orphaned_images:
            try:
                self.storage.delete(self.settings.image_bucket, orphan.object_key)
            except StorageError as e:
                logger.warning("Failed to delete orphaned image %s: %s", orphan.object_key, e)
                errors.append(f"Failed to delete {orphan.object_key}: {e}")
                continue
            deleted += 1
            freed += orphan.size

        log_orphaned_images_deleted(
            self.db,
            admin_user_id=admin_user_id,
            deleted_count=deleted,
            freed_bytes=freed,
            error_count=len(errors),
        )
        logger.info("Deleted %d orphaned images, freed %d bytes", deleted, freed)
        return schemas.DeleteOrphanedImagesResponse(deleted_count=deleted, freed_bytes=freed, errors=errors)
