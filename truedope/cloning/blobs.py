"""
Blob-side bookkeeping for a clone: the undo-log of written objects and the
bounded worker pool used for blob store calls.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BlobUndoLog:
    """Ordered record of every blob written by one clone invocation.

    Entries are appended from worker threads, so appends take a lock.
    Replaying deletes in reverse order compensates for a rolled-back
    transaction.
    """

    def __init__(self):
        self._entries: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def record(self, bucket: str, key: str) -> None:
        with self._lock:
            self._entries.append((bucket, key))

    def discard(self, bucket: str, key: str) -> None:
        """Forget an entry whose blob was already removed."""
        with self._lock:
            try:
                self._entries.remove((bucket, key))
            except ValueError:
                pass

    def entries(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def compensate(self, storage) -> Tuple[int, int]:
        """Delete every recorded blob, newest first. Returns (deleted, failed)."""
        deleted = failed = 0
        for bucket, key in reversed(self.entries()):
            try:
                storage.delete(bucket, key)
                deleted += 1
            except Exception:
                failed += 1
                logger.warning("Blob cleanup could not delete %s/%s", bucket, key, exc_info=True)
        logger.info("Blob cleanup finished: deleted=%d failed=%d", deleted, failed)
        return deleted, failed


def run_bounded(func: Callable[[T], R], items: Iterable[T], max_workers: int) -> List[R]:
    """Apply ``func`` to each item on at most ``max_workers`` threads, keeping input order.

    ``func`` is expected to capture its own failures; any exception it does
    raise propagates to the caller.
    """
    items = list(items)
    if not items:
        return []
    if max_workers <= 1 or len(items) == 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items)), thread_name_prefix="clone-blob") as pool:
        return list(pool.map(func, items))
