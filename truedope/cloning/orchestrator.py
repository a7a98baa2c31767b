"""
User-data clone orchestrator.

Replaces everything a target user owns with a copy of a source user's
data: one database transaction covers deleting the target's rows and
inserting the copies, while image blobs are copied alongside and removed
again (best effort) if the transaction rolls back.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from truedope import audit
from truedope.db import crud, schemas
from truedope.utils.settings import Settings, get_settings
from .context import CloneContext, CloneState
from .copiers import EntityCopier, default_copiers
from .errors import (
    CloneCancelledError,
    CloneFailedError,
    CloneInProgressError,
    CloneValidationError,
    ConfirmationRequiredError,
)
from .graph import PIPELINE
from .locks import TargetUserLocks, get_target_locks, try_advisory_lock
from .planner import DeletionPlanner
from .preview import get_data_counts

logger = logging.getLogger(__name__)

CONFIRMATION_MESSAGE = "Set confirm_overwrite to true to proceed. WARNING: This will DELETE all target user data!"

_cleanup_executor: Optional[ThreadPoolExecutor] = None
_cleanup_executor_lock = threading.Lock()


def _default_cleanup_executor() -> ThreadPoolExecutor:
    global _cleanup_executor
    with _cleanup_executor_lock:
        if _cleanup_executor is None:
            _cleanup_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="clone-cleanup")
        return _cleanup_executor


def require_confirmation(confirm_overwrite: bool) -> None:
    if not confirm_overwrite:
        raise ConfirmationRequiredError(CONFIRMATION_MESSAGE)


class UserDataCloneService:
    """Clone one user's owned data onto another user, replacing the target's data.

    A service instance wraps one session and may run one clone at a time;
    concurrent clones into the same target are refused across instances.
    """

    def __init__(
        self,
        db: Session,
        storage,
        *,
        settings: Optional[Settings] = None,
        copiers: Optional[Sequence[EntityCopier]] = None,
        locks: Optional[TargetUserLocks] = None,
        cleanup_executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.db = db
        self.storage = storage
        self.settings = settings or get_settings()
        self.copiers = list(copiers) if copiers is not None else default_copiers(storage, self.settings)
        self.kinds = [copier.kind for copier in self.copiers]
        self._kinds_by_name = {kind.name: kind for kind in PIPELINE}
        self._kinds_by_name.update({kind.name: kind for kind in self.kinds})
        self.planner = DeletionPlanner(
            storage,
            self.settings.image_bucket,
            max_workers=self.settings.clone_blob_workers,
            kinds=list(self._kinds_by_name.values()),
        )
        self.locks = locks or get_target_locks()
        self.cleanup_executor = cleanup_executor or _default_cleanup_executor()

    def _validate_users(self, source_user_id: uuid.UUID, target_user_id: uuid.UUID) -> None:
        if source_user_id == target_user_id:
            raise CloneValidationError("Source and target users must be different")
        if not crud.user_exists(self.db, source_user_id):
            raise CloneValidationError(f"Source user {source_user_id} not found")
        if not crud.user_exists(self.db, target_user_id):
            raise CloneValidationError(f"Target user {target_user_id} not found")

    def preview(self, source_user_id: uuid.UUID, target_user_id: uuid.UUID) -> schemas.ClonePreviewResponse:
        self._validate_users(source_user_id, target_user_id)
        source = crud.get_user(self.db, source_user_id)
        target = crud.get_user(self.db, target_user_id)
        return schemas.ClonePreviewResponse(
            source_user_id=source.id,
            source_user_email=source.email,
            target_user_id=target.id,
            target_user_email=target.email,
            source_counts=get_data_counts(self.db, source.id),
            target_counts=get_data_counts(self.db, target.id),
        )

    def _schedule_cleanup(self, ctx: CloneContext) -> Future:
        if len(ctx.undo_log) == 0:
            done: Future = Future()
            done.set_result((0, 0))
            return done
        logger.info("Scheduling cleanup of %d blobs written by failed clone into %s", len(ctx.undo_log), ctx.target_user_id)
        return self.cleanup_executor.submit(ctx.undo_log.compensate, self.storage)

    def _run(self, ctx: CloneContext) -> None:
        if not try_advisory_lock(self.db, ctx.target_user_id):
            raise CloneInProgressError(ctx.target_user_id)

        ctx.transition(CloneState.DELETING)
        deletion = self.planner.delete_all_data_for(self.db, ctx.target_user_id, ctx)
        logger.debug(
            "Deletion phase for %s: %s, blobs removed=%d failed=%d",
            ctx.target_user_id,
            deletion.deleted,
            len(deletion.blob_keys_removed),
            deletion.blob_delete_failures,
        )

        ctx.transition(CloneState.COPYING)
        for copier in self.copiers:
            ctx.check_cancelled()
            copier.copy(self.db, ctx, self._kinds_by_name)

        ctx.transition(CloneState.COMMITTING)
        ctx.check_cancelled()
        self.db.commit()

    def clone_user_data(
        self,
        source_user_id: uuid.UUID,
        target_user_id: uuid.UUID,
        admin_user_id: uuid.UUID,
        cancel_event: Optional[threading.Event] = None,
    ) -> schemas.CloneUserDataResponse:
        ctx = CloneContext(
            source_user_id=source_user_id,
            target_user_id=target_user_id,
            admin_user_id=admin_user_id,
            strict_mapping=self.settings.clone_strict_mapping,
            cancel_event=cancel_event or threading.Event(),
        )
        ctx.transition(CloneState.VALIDATING)
        self._validate_users(source_user_id, target_user_id)

        started = time.perf_counter()
        with self.locks.hold(target_user_id):
            logger.info(
                "Starting user data clone from %s to %s by admin %s",
                source_user_id,
                target_user_id,
                admin_user_id,
            )
            try:
                self._run(ctx)
            except CloneInProgressError:
                self.db.rollback()
                ctx.transition(CloneState.ROLLED_BACK)
                raise
            except CloneCancelledError as exc:
                self.db.rollback()
                ctx.transition(CloneState.ROLLED_BACK)
                logger.warning("User data clone into %s cancelled; rolled back", target_user_id)
                raise CloneCancelledError(cleanup=self._schedule_cleanup(ctx)) from exc
            except Exception as exc:
                self.db.rollback()
                ctx.transition(CloneState.ROLLED_BACK)
                logger.exception("User data clone from %s to %s failed; rolled back", source_user_id, target_user_id)
                raise CloneFailedError(cleanup=self._schedule_cleanup(ctx)) from exc
            ctx.transition(CloneState.SUCCEEDED)

        duration_ms = int((time.perf_counter() - started) * 1000)
        statistics = ctx.statistics
        logger.info(
            "User data clone from %s to %s completed in %dms", source_user_id, target_user_id, duration_ms
        )
        if statistics.rows_skipped or statistics.image_copy_failures:
            logger.warning(
                "Clone into %s skipped rows %s and %d images",
                target_user_id,
                statistics.rows_skipped,
                statistics.image_copy_failures,
            )

        try:
            audit.log_user_data_clone(
                self.db,
                admin_user_id=admin_user_id,
                source_user_id=source_user_id,
                target_user_id=target_user_id,
                statistics=statistics,
                duration_ms=duration_ms,
            )
        except Exception:
            self.db.rollback()
            logger.exception("Failed to write audit record for clone into %s", target_user_id)

        return schemas.CloneUserDataResponse(
            success=True,
            source_user_id=source_user_id,
            target_user_id=target_user_id,
            statistics=statistics,
            completed_at=datetime.now(timezone.utc),
            duration_ms=duration_ms,
            message="User data cloned successfully",
        )

    async def clone_user_data_async(
        self,
        source_user_id: uuid.UUID,
        target_user_id: uuid.UUID,
        admin_user_id: uuid.UUID,
    ) -> schemas.CloneUserDataResponse:
        """Run the clone in a worker thread; cancelling the awaiting task aborts it."""
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(
                self.clone_user_data, source_user_id, target_user_id, admin_user_id, cancel_event
            )
        except asyncio.CancelledError:
            cancel_event.set()
            raise
