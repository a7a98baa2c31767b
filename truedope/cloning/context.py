"""
Per-invocation clone state.

A ``CloneContext`` is built fresh for every clone and passed by reference
through the planner and every copier. Nothing in it outlives the call.
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from truedope.db.schemas import CloneStatistics
from .blobs import BlobUndoLog
from .errors import CloneCancelledError

logger = logging.getLogger(__name__)


class CloneState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    DELETING = "deleting"
    COPYING = "copying"
    COMMITTING = "committing"
    SUCCEEDED = "succeeded"
    ROLLED_BACK = "rolled_back"


_TERMINAL = {CloneState.SUCCEEDED, CloneState.ROLLED_BACK}

_ALLOWED = {
    CloneState.IDLE: {CloneState.VALIDATING},
    CloneState.VALIDATING: {CloneState.DELETING, CloneState.ROLLED_BACK},
    CloneState.DELETING: {CloneState.COPYING, CloneState.ROLLED_BACK},
    CloneState.COPYING: {CloneState.COMMITTING, CloneState.ROLLED_BACK},
    CloneState.COMMITTING: {CloneState.SUCCEEDED, CloneState.ROLLED_BACK},
}


class IdMappingTable:
    """Old id -> new id, kept separately per entity kind."""

    def __init__(self):
        self._maps: Dict[str, Dict[Any, Any]] = {}

    def record(self, kind: str, old_id: Any, new_id: Any) -> None:
        self._maps.setdefault(kind, {})[old_id] = new_id

    def lookup(self, kind: str, old_id: Any) -> Optional[Any]:
        return self._maps.get(kind, {}).get(old_id)

    def count(self, kind: str) -> int:
        return len(self._maps.get(kind, {}))

    def __contains__(self, item) -> bool:
        kind, old_id = item
        return old_id in self._maps.get(kind, {})


@dataclass
class CloneContext:
    source_user_id: uuid.UUID
    target_user_id: uuid.UUID
    admin_user_id: uuid.UUID
    strict_mapping: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event)
    mappings: IdMappingTable = field(default_factory=IdMappingTable)
    statistics: CloneStatistics = field(default_factory=CloneStatistics)
    undo_log: BlobUndoLog = field(default_factory=BlobUndoLog)
    state: CloneState = CloneState.IDLE

    def transition(self, new_state: CloneState) -> None:
        if self.state in _TERMINAL or new_state not in _ALLOWED.get(self.state, set()):
            raise RuntimeError(f"Invalid clone state transition {self.state.value} -> {new_state.value}")
        logger.debug(
            "Clone %s -> %s: %s -> %s",
            self.source_user_id,
            self.target_user_id,
            self.state.value,
            new_state.value,
        )
        self.state = new_state

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise CloneCancelledError()
