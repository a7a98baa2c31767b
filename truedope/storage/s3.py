"""S3-compatible (MinIO) blob store adapter backed by boto3."""
from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional, Set

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from truedope.utils.settings import Settings, get_settings
from .base import StorageError, StorageObject

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def _is_not_found(err: Exception) -> bool:
    if isinstance(err, ClientError):
        code = err.response.get("Error", {}).get("Code", "")
        return code in _NOT_FOUND_CODES
    return False


def build_s3_client(settings: Settings):
    session = boto3.Session(
        aws_access_key_id=settings.s3_access_key,
        aws_secret_access_key=settings.s3_secret_key,
        region_name=settings.s3_region,
    )
    return session.client(
        "s3",
        region_name=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        config=BotoConfig(
            connect_timeout=settings.s3_request_timeout_s,
            read_timeout=settings.s3_request_timeout_s,
            retries={"max_attempts": 5, "mode": "standard"},
            # MinIO serves buckets under the path, not a virtual host
            s3={"addressing_style": "path"},
        ),
    )


class S3StorageService:
    """Thread-safe for concurrent upload/get/delete; boto3 clients may be shared across threads."""

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or get_settings()
        self._client = client if client is not None else build_s3_client(self.settings)
        self._known_buckets: Set[str] = set()
        self._bucket_lock = threading.Lock()

    def _ensure_bucket(self, bucket: str) -> None:
        with self._bucket_lock:
            if bucket in self._known_buckets:
                return
            try:
                self._client.head_bucket(Bucket=bucket)
            except ClientError as e:
                if not _is_not_found(e):
                    raise StorageError("head_bucket", bucket, str(e)) from e
                logger.info("Creating missing bucket %s", bucket)
                try:
                    self._client.create_bucket(Bucket=bucket)
                except (ClientError, BotoCoreError) as ce:
                    raise StorageError("create_bucket", bucket, str(ce)) from ce
            except BotoCoreError as e:
                raise StorageError("head_bucket", bucket, str(e)) from e
            self._known_buckets.add(bucket)

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket(bucket)
        try:
            self._client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError("upload", key, str(e)) from e
        logger.debug("Uploaded %s/%s (%d bytes)", bucket, key, len(data))

    def get(self, bucket: str, key: str) -> Optional[bytes]:
        try:
            resp = self._client.get_object(Bucket=bucket, Key=key)
            return resp["Body"].read()
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise StorageError("get", key, str(e)) from e
        except BotoCoreError as e:
            raise StorageError("get", key, str(e)) from e

    def delete(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            # Deleting an absent object is not an error
            if _is_not_found(e):
                return
            raise StorageError("delete", key, str(e)) from e
        except BotoCoreError as e:
            raise StorageError("delete", key, str(e)) from e
        logger.debug("Deleted %s/%s", bucket, key)

    def list_objects(self, bucket: str, prefix: str = "") -> List[StorageObject]:
        objects: List[StorageObject] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    objects.append(
                        StorageObject(
                            key=item["Key"],
                            size=int(item.get("Size", 0)),
                            last_modified=item.get("LastModified"),
                        )
                    )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code", "") == "NoSuchBucket":
                return []
            raise StorageError("list_objects", prefix or bucket, str(e)) from e
        except BotoCoreError as e:
            raise StorageError("list_objects", prefix or bucket, str(e)) from e
        return objects
