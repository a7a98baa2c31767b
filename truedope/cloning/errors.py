"""Errors raised by the user-data clone engine."""
from __future__ import annotations

from concurrent.futures import Future
from typing import Optional


class CloneValidationError(ValueError):
    """Unknown user or source equals target; nothing was mutated."""


class ConfirmationRequiredError(CloneValidationError):
    """The caller did not acknowledge that target data will be destroyed."""


class CloneInProgressError(Exception):
    """Another clone already holds the lock for this target user."""

    def __init__(self, target_user_id):
        super().__init__(f"A clone into user {target_user_id} is already in progress")
        self.target_user_id = target_user_id


class CloneFailedError(Exception):
    """The clone was rolled back.

    ``cleanup`` completes once blobs written by the failed invocation have
    been removed (best effort). It resolves to ``(deleted, failed)`` counts.
    """

    def __init__(self, message: str = "An error occurred while cloning user data", cleanup: Optional[Future] = None):
        super().__init__(message)
        self.cleanup = cleanup


class CloneCancelledError(CloneFailedError):
    def __init__(self, message: str = "Clone cancelled", cleanup: Optional[Future] = None):
        super().__init__(message, cleanup=cleanup)


class MappingMissError(Exception):
    """A required parent id had no mapping while strict mapping is enabled."""

    def __init__(self, kind: str, column: str, source_value):
        super().__init__(f"{kind}.{column}={source_value} has no mapped parent")
        self.kind = kind
        self.column = column
        self.source_value = source_value


class BlobTransferError(Exception):
    """A single image blob could not be copied."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason
