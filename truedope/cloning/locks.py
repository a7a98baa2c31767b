"""
Per-target-user clone locks.

The in-process registry stops two clones into the same user from one
worker process; on PostgreSQL a transaction-scoped advisory lock does the
same across processes and is released by commit or rollback.
"""
from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Set

from sqlalchemy import text
from sqlalchemy.orm import Session

from .errors import CloneInProgressError


class TargetUserLocks:
    def __init__(self):
        self._held: Set[uuid.UUID] = set()
        self._lock = threading.Lock()

    def acquire(self, target_user_id: uuid.UUID) -> None:
        with self._lock:
            if target_user_id in self._held:
                raise CloneInProgressError(target_user_id)
            self._held.add(target_user_id)

    def release(self, target_user_id: uuid.UUID) -> None:
        with self._lock:
            self._held.discard(target_user_id)

    def is_held(self, target_user_id: uuid.UUID) -> bool:
        with self._lock:
            return target_user_id in self._held

    def any_held(self) -> bool:
        with self._lock:
            return bool(self._held)

    @contextmanager
    def hold(self, target_user_id: uuid.UUID):
        self.acquire(target_user_id)
        try:
            yield
        finally:
            self.release(target_user_id)


_registry = TargetUserLocks()


def get_target_locks() -> TargetUserLocks:
    return _registry


def advisory_lock_key(target_user_id: uuid.UUID) -> int:
    # pg advisory keys are signed bigint
    return target_user_id.int & ((1 << 63) - 1)


def try_advisory_lock(db: Session, target_user_id: uuid.UUID) -> bool:
    """Take the cross-process lock for this transaction; True when not on PostgreSQL."""
    if db.get_bind().dialect.name != "postgresql":
        return True
    acquired = db.execute(
        text("SELECT pg_try_advisory_xact_lock(:key)"),
        {"key": advisory_lock_key(target_user_id)},
    ).scalar()
    return bool(acquired)
