"""Blob storage adapters."""

from .base import StorageError, StorageObject, StorageService
from .s3 import S3StorageService, build_s3_client

__all__ = [
    "StorageError",
    "StorageObject",
    "StorageService",
    "S3StorageService",
    "build_s3_client",
]
