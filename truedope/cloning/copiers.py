"""
Entity copiers: read one kind's source rows, insert target rows with
remapped references, and extend the id mapping table.

``EntityCopier`` handles every plain kind by introspecting the mapped
columns. ``ImageCopier`` additionally moves the image bytes to keys under
the target user before the row is inserted.
"""
from __future__ import annotations

import copy
import logging
import posixpath
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from truedope.db.models import now_utc
from truedope.storage import StorageError
from truedope.utils.settings import Settings
from .blobs import run_bounded
from .context import CloneContext
from .errors import BlobTransferError, MappingMissError
from .graph import PIPELINE, EntityKind, Reference, owned_filter

logger = logging.getLogger(__name__)

# Parent reference column -> key folder
IMAGE_FOLDERS = {
    "rifle_setup_id": "rifles",
    "range_session_id": "sessions",
    "group_entry_id": "groups",
}

THUMBNAIL_CONTENT_TYPE = "image/jpeg"

_MISSING = object()


class EntityCopier:
    def __init__(self, kind: EntityKind):
        self.kind = kind
        self._columns = [attr.key for attr in inspect(kind.model).column_attrs]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.name})"

    def source_rows(self, db: Session, ctx: CloneContext, kinds_by_name: Dict[str, EntityKind]) -> List[Any]:
        pk = getattr(self.kind.model, self.kind.pk)
        stmt = select(self.kind.model).where(owned_filter(self.kind, ctx.source_user_id, kinds_by_name)).order_by(pk)
        return list(db.execute(stmt).scalars().all())

    def remap_reference(self, ref: Reference, value: Any, ctx: CloneContext) -> Any:
        """New id for ``value``; ``_MISSING`` when a required parent was not copied."""
        if value is None:
            return None
        new_id = ctx.mappings.lookup(ref.kind, value)
        if new_id is not None:
            return new_id
        if not ref.required:
            return None
        if ctx.strict_mapping:
            raise MappingMissError(self.kind.name, ref.column, value)
        return _MISSING

    def build_values(self, row: Any, ctx: CloneContext) -> Optional[Dict[str, Any]]:
        """Column values for the target copy of ``row``, or None to skip it."""
        kind = self.kind
        references = {ref.column: ref for ref in kind.references}
        now = now_utc()
        values: Dict[str, Any] = {}
        for key in self._columns:
            if key == kind.pk and key != kind.owner_column:
                continue
            if key == kind.owner_column:
                values[key] = ctx.target_user_id
            elif key in kind.timestamp_columns:
                values[key] = now
            elif key in references:
                new_id = self.remap_reference(references[key], getattr(row, key), ctx)
                if new_id is _MISSING:
                    logger.warning(
                        "Skipping %s %s: %s=%s was not copied",
                        kind.name,
                        getattr(row, kind.pk),
                        key,
                        getattr(row, key),
                    )
                    return None
                values[key] = new_id
            else:
                # JSON columns must not share mutable state with the source row
                values[key] = copy.deepcopy(getattr(row, key))
        return values

    def insert(self, db: Session, ctx: CloneContext, pairs: Sequence[tuple]) -> int:
        """Insert ``(source_row, values)`` pairs, flush, and record id mappings."""
        kind = self.kind
        created = [(source, kind.model(**values)) for source, values in pairs]
        db.add_all([target for _, target in created])
        db.flush()
        if kind.pk != kind.owner_column:
            for source, target in created:
                ctx.mappings.record(kind.name, getattr(source, kind.pk), getattr(target, kind.pk))
        ctx.statistics.record_copied(kind.name, len(created))
        return len(created)

    def copy(self, db: Session, ctx: CloneContext, kinds_by_name: Dict[str, EntityKind]) -> int:
        pairs = []
        for row in self.source_rows(db, ctx, kinds_by_name):
            ctx.check_cancelled()
            values = self.build_values(row, ctx)
            if values is None:
                ctx.statistics.record_skipped(self.kind.name)
                continue
            pairs.append((row, values))
        ctx.check_cancelled()
        copied = self.insert(db, ctx, pairs)
        logger.debug("Copied %d %s", copied, self.kind.name)
        return copied


@dataclass
class _ImagePlan:
    row: Any
    values: Dict[str, Any]
    key: str
    thumbnail_key: Optional[str]


class ImageCopier(EntityCopier):
    def __init__(self, kind: EntityKind, storage, bucket: str, *, max_workers: int = 4):
        super().__init__(kind)
        self.storage = storage
        self.bucket = bucket
        self.max_workers = max_workers

    def plan(self, row: Any, values: Dict[str, Any], ctx: CloneContext) -> _ImagePlan:
        parent_column = next(column for column in IMAGE_FOLDERS if values.get(column) is not None)
        prefix = f"{ctx.target_user_id}/{IMAGE_FOLDERS[parent_column]}/{values[parent_column]}"
        ext = posixpath.splitext(row.file_name)[1] or posixpath.splitext(row.original_file_name)[1]
        thumbnail_key = f"{prefix}/{uuid.uuid4()}_thumb.jpg" if row.thumbnail_file_name else None
        return _ImagePlan(row=row, values=values, key=f"{prefix}/{uuid.uuid4()}{ext}", thumbnail_key=thumbnail_key)

    def _discard_written(self, keys: List[str], ctx: CloneContext) -> None:
        for key in keys:
            try:
                self.storage.delete(self.bucket, key)
            except StorageError as e:
                # Left in the undo-log; a rollback retries it
                logger.warning("Could not remove partial image blob %s: %s", key, e)
            else:
                ctx.undo_log.discard(self.bucket, key)

    def transfer(self, plan: _ImagePlan, ctx: CloneContext) -> bool:
        """Copy the original (and thumbnail) bytes. False skips the image row."""
        if ctx.cancelled:
            return False
        row = plan.row
        written: List[str] = []
        try:
            data = self.storage.get(self.bucket, row.file_name)
            if data is None:
                raise BlobTransferError(row.file_name, "source object missing")
            ctx.undo_log.record(self.bucket, plan.key)
            written.append(plan.key)
            self.storage.upload(self.bucket, plan.key, data, row.content_type)

            if plan.thumbnail_key:
                thumb = self.storage.get(self.bucket, row.thumbnail_file_name)
                if thumb is None:
                    logger.info("Thumbnail %s missing; copying image %s without one", row.thumbnail_file_name, row.id)
                    plan.thumbnail_key = None
                else:
                    ctx.undo_log.record(self.bucket, plan.thumbnail_key)
                    written.append(plan.thumbnail_key)
                    self.storage.upload(self.bucket, plan.thumbnail_key, thumb, THUMBNAIL_CONTENT_TYPE)
        except (StorageError, BlobTransferError) as e:
            logger.warning("Image %s not copied: %s", row.id, e)
            self._discard_written(written, ctx)
            return False
        return True

    def copy(self, db: Session, ctx: CloneContext, kinds_by_name: Dict[str, EntityKind]) -> int:
        plans: List[_ImagePlan] = []
        for row in self.source_rows(db, ctx, kinds_by_name):
            ctx.check_cancelled()
            populated = [column for column in IMAGE_FOLDERS if getattr(row, column) is not None]
            if len(populated) != 1:
                logger.warning("Skipping image %s: %d parent references populated", row.id, len(populated))
                ctx.statistics.record_skipped(self.kind.name)
                continue
            values = self.build_values(row, ctx)
            if values is None:
                ctx.statistics.record_skipped(self.kind.name)
                continue
            plans.append(self.plan(row, values, ctx))

        outcomes = run_bounded(lambda p: self.transfer(p, ctx), plans, self.max_workers)
        ctx.check_cancelled()

        pairs = []
        copied_bytes = 0
        for plan, ok in zip(plans, outcomes):
            if not ok:
                ctx.statistics.image_copy_failures += 1
                continue
            plan.values["file_name"] = plan.key
            plan.values["thumbnail_file_name"] = plan.thumbnail_key
            pairs.append((plan.row, plan.values))
            copied_bytes += plan.row.file_size or 0
        copied = self.insert(db, ctx, pairs)
        ctx.statistics.image_bytes_copied += copied_bytes
        logger.debug("Copied %d images (%d bytes)", copied, copied_bytes)
        return copied


def default_copiers(storage, settings: Settings, kinds: Sequence[EntityKind] = PIPELINE) -> List[EntityCopier]:
    """One copier per kind, in pipeline order."""
    copiers: List[EntityCopier] = []
    for kind in kinds:
        if kind.name == "images":
            copiers.append(
                ImageCopier(kind, storage, settings.image_bucket, max_workers=settings.clone_blob_workers)
            )
        else:
            copiers.append(EntityCopier(kind))
    return copiers
