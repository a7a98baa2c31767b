from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class OrphanedImage(BaseModel):
    object_key: str
    size: int
    last_modified: Optional[datetime] = None


class OrphanedImagesResponse(BaseModel):
    orphaned_images: List[OrphanedImage]
    total_count: int
    total_size: int


class DeleteOrphanedImagesResponse(BaseModel):
    deleted_count: int
    freed_bytes: int
    errors: List[str] = []


class ImageStatsResponse(BaseModel):
    total_images: int
    storage_size_bytes: int
    storage_size_formatted: str
    missing_thumbnails: int
    orphaned_file_count: int
