"""Blob store interface consumed by the clone engine and image maintenance."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol


class StorageError(Exception):
    """A blob store call failed for a reason other than the object being absent."""

    def __init__(self, operation: str, key: str, message: str):
        super().__init__(f"{operation} failed for '{key}': {message}")
        self.operation = operation
        self.key = key


@dataclass(frozen=True)
class StorageObject:
    key: str
    size: int
    last_modified: Optional[datetime] = None


class StorageService(Protocol):
    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None: ...

    def get(self, bucket: str, key: str) -> Optional[bytes]:
        """Return object bytes, or None when the key does not exist."""
        ...

    def delete(self, bucket: str, key: str) -> None: ...

    def list_objects(self, bucket: str, prefix: str = "") -> List[StorageObject]: ...
