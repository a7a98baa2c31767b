"""
Deletion planner: wipes every row the target user owns, plus the image
blobs those rows point at, before the copy phase runs.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from truedope.db import models
from truedope.storage import StorageError
from .blobs import run_bounded
from .context import CloneContext
from .graph import ENTITY_KINDS, EntityKind, deletion_order, owned_filter

logger = logging.getLogger(__name__)


@dataclass
class DeletionResult:
    deleted: Dict[str, int] = field(default_factory=dict)
    blob_keys_removed: List[str] = field(default_factory=list)
    blob_delete_failures: int = 0


class DeletionPlanner:
    def __init__(self, storage, bucket: str, *, max_workers: int = 4, kinds: Sequence[EntityKind] = ENTITY_KINDS):
        self.storage = storage
        self.bucket = bucket
        self.max_workers = max_workers
        self.kinds = list(kinds)
        self._order = deletion_order(self.kinds)
        self._by_name = {kind.name: kind for kind in self.kinds}

    def image_blob_keys(self, db: Session, user_id: uuid.UUID) -> List[str]:
        """Original and thumbnail keys of every image the user owns."""
        images = self._by_name.get("images")
        if images is None:
            return []
        rows = db.execute(
            select(models.Image.file_name, models.Image.thumbnail_file_name)
            .where(owned_filter(images, user_id, self._by_name))
            .order_by(models.Image.id)
        ).all()
        keys: List[str] = []
        for file_name, thumbnail_file_name in rows:
            keys.append(file_name)
            if thumbnail_file_name:
                keys.append(thumbnail_file_name)
        return keys

    def delete_all_data_for(self, db: Session, target_user_id: uuid.UUID, ctx: CloneContext) -> DeletionResult:
        result = DeletionResult()
        # Keys must be read before the image rows disappear
        blob_keys = self.image_blob_keys(db, target_user_id)

        for kind in self._order:
            ctx.check_cancelled()
            stmt = (
                delete(kind.model)
                .where(owned_filter(kind, target_user_id, self._by_name))
                .execution_options(synchronize_session="fetch")
            )
            count = db.execute(stmt).rowcount or 0
            result.deleted[kind.name] = count
            ctx.statistics.record_deleted(kind.name, count)
            logger.debug("Deleted %d %s for user %s", count, kind.name, target_user_id)

        ctx.check_cancelled()
        outcomes = run_bounded(lambda key: self._delete_blob(key, ctx), blob_keys, self.max_workers)
        for key, removed in zip(blob_keys, outcomes):
            if removed:
                result.blob_keys_removed.append(key)
            else:
                result.blob_delete_failures += 1
        ctx.statistics.image_blobs_deleted += len(result.blob_keys_removed)
        ctx.statistics.blob_delete_failures += result.blob_delete_failures
        ctx.check_cancelled()
        return result

    def _delete_blob(self, key: str, ctx: CloneContext) -> bool:
        if ctx.cancelled:
            return False
        try:
            self.storage.delete(self.bucket, key)
            return True
        except StorageError as e:
            logger.warning("Failed to delete blob %s/%s: %s", self.bucket, key, e)
            return False
