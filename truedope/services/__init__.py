"""Business logic services package with public service helpers."""

from .image_maintenance import ImageMaintenanceService, OrphanSweepBlockedError, format_file_size

__all__ = [
    "ImageMaintenanceService",
    "OrphanSweepBlockedError",
    "format_file_size",
]
