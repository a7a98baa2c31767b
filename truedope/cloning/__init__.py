"""
User-data clone-and-replace engine.

`UserDataCloneService` is the entry point; the remaining modules are the
pieces it sequences (deletion planner, per-kind copiers, preview counts)
and the per-invocation state they share.
"""

from .errors import (
    BlobTransferError,
    CloneCancelledError,
    CloneFailedError,
    CloneInProgressError,
    CloneValidationError,
    ConfirmationRequiredError,
    MappingMissError,
)
from .graph import ENTITY_KINDS, PIPELINE, EntityKind, Reference, deletion_order, owned_filter, pipeline_order
from .context import CloneContext, CloneState, IdMappingTable
from .blobs import BlobUndoLog
from .planner import DeletionPlanner, DeletionResult
from .copiers import EntityCopier, ImageCopier, default_copiers
from .preview import get_data_counts
from .orchestrator import UserDataCloneService, require_confirmation

__all__ = [
    "BlobTransferError",
    "CloneCancelledError",
    "CloneFailedError",
    "CloneInProgressError",
    "CloneValidationError",
    "ConfirmationRequiredError",
    "MappingMissError",
    "ENTITY_KINDS",
    "PIPELINE",
    "EntityKind",
    "Reference",
    "deletion_order",
    "owned_filter",
    "pipeline_order",
    "CloneContext",
    "CloneState",
    "IdMappingTable",
    "BlobUndoLog",
    "DeletionPlanner",
    "DeletionResult",
    "EntityCopier",
    "ImageCopier",
    "default_copiers",
    "get_data_counts",
    "UserDataCloneService",
    "require_confirmation",
]
