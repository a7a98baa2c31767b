"""Runtime settings for the clone engine and blob store, sourced from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_IMAGE_BUCKET = "truedope-images"


@dataclass(frozen=True)
class Settings:
    image_bucket: str = DEFAULT_IMAGE_BUCKET
    clone_blob_workers: int = 4
    clone_strict_mapping: bool = False
    s3_endpoint_url: Optional[str] = None
    s3_region: Optional[str] = None
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_request_timeout_s: float = 30.0
    # Younger blobs may belong to a clone whose rows are not committed yet
    orphan_min_age_s: float = 3600.0


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def _float_env(name: str, default: float, *, allow_zero: bool = False) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value > 0 or (allow_zero and value == 0):
        return value
    return default


def _optional_env(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return the cached settings sourced from the environment."""
    return Settings(
        image_bucket=_optional_env("IMAGE_BUCKET") or DEFAULT_IMAGE_BUCKET,
        clone_blob_workers=_int_env("CLONE_BLOB_WORKERS", 4, minimum=1),
        clone_strict_mapping=_normalize_bool(os.getenv("CLONE_STRICT_MAPPING"), default=False),
        s3_endpoint_url=_optional_env("S3_ENDPOINT_URL"),
        s3_region=_optional_env("S3_REGION"),
        s3_access_key=_optional_env("S3_ACCESS_KEY"),
        s3_secret_key=_optional_env("S3_SECRET_KEY"),
        s3_request_timeout_s=_float_env("S3_REQUEST_TIMEOUT_S", 30.0),
        orphan_min_age_s=_float_env("ORPHAN_MIN_AGE_S", 3600.0, allow_zero=True),
    )


def refresh_settings_cache() -> None:
    """Clear cached settings (useful for tests)."""
    get_settings.cache_clear()
