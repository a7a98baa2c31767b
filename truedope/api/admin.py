"""
Admin API endpoints.

User-data clone (preview and execute), audit-log browsing and the orphaned
image sweep. All routes require an admin caller.
"""
import logging
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from truedope.api.deps import get_storage, require_admin
from truedope.cloning import (
    CloneFailedError,
    CloneInProgressError,
    CloneValidationError,
    ConfirmationRequiredError,
    UserDataCloneService,
    require_confirmation,
)
from truedope.db import crud, models, schemas
from truedope.db.database import get_db
from truedope.services import ImageMaintenanceService, OrphanSweepBlockedError
from truedope.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


@router.post("/clone-user-data/preview", response_model=schemas.ClonePreviewResponse)
def preview_clone_user_data(
    request: schemas.ClonePreviewRequest,
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    admin: models.User = Depends(require_admin),
):
    service = UserDataCloneService(db, storage)
    try:
        return service.preview(request.source_user_id, request.target_user_id)
    except CloneValidationError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", str(e))


@router.post("/clone-user-data", response_model=schemas.CloneUserDataResponse)
def clone_user_data(
    request: schemas.CloneUserDataRequest,
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    admin: models.User = Depends(require_admin),
):
    try:
        require_confirmation(request.confirm_overwrite)
    except ConfirmationRequiredError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "CONFIRMATION_REQUIRED", str(e))

    logger.info(
        "Admin %s cloning user data from %s to %s",
        admin.email,
        request.source_user_id,
        request.target_user_id,
    )
    service = UserDataCloneService(db, storage)
    try:
        return service.clone_user_data(request.source_user_id, request.target_user_id, admin.id)
    except CloneValidationError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", str(e))
    except CloneInProgressError as e:
        raise _error(status.HTTP_409_CONFLICT, "CLONE_IN_PROGRESS", str(e))
    except CloneFailedError:
        # Detail already logged by the service
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "CLONE_FAILED", "An error occurred while cloning user data")


@router.get("/audit-logs", response_model=List[schemas.AdminAuditLog])
def list_admin_audit_logs(
    admin_user_id: Optional[uuid.UUID] = None,
    target_user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
):
    return crud.get_admin_audit_logs(
        db,
        admin_user_id=admin_user_id,
        target_user_id=target_user_id,
        action_type=action_type,
        skip=skip,
        limit=min(limit, 500),
    )


@router.get("/images/stats", response_model=schemas.ImageStatsResponse)
def get_image_stats(
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    admin: models.User = Depends(require_admin),
):
    try:
        return ImageMaintenanceService(db, storage).get_image_stats()
    except StorageError:
        logger.exception("Listing image bucket failed")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Image storage unavailable")


@router.get("/images/orphaned", response_model=schemas.OrphanedImagesResponse)
def find_orphaned_images(
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    admin: models.User = Depends(require_admin),
):
    try:
        return ImageMaintenanceService(db, storage).find_orphaned_images()
    except StorageError:
        logger.exception("Listing image bucket failed")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Image storage unavailable")


@router.delete("/images/orphaned", response_model=schemas.DeleteOrphanedImagesResponse)
def delete_orphaned_images(
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    admin: models.User = Depends(require_admin),
):
    try:
        return ImageMaintenanceService(db, storage).delete_orphaned_images(admin.id)
    except OrphanSweepBlockedError as e:
        raise _error(status.HTTP_409_CONFLICT, "CLONE_IN_PROGRESS", str(e))
    except StorageError:
        logger.exception("Listing image bucket failed")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Image storage unavailable")
