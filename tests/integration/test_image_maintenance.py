import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from truedope.api.deps import get_storage
from truedope.api.main import app
from truedope.cloning import UserDataCloneService
from truedope.cloning.locks import TargetUserLocks, get_target_locks
from truedope.db import models
from truedope.db.database import get_db
from truedope.services import ImageMaintenanceService, OrphanSweepBlockedError
from truedope.utils.settings import Settings, refresh_settings_cache

BUCKET = "truedope-images"


@pytest.fixture
def referenced_and_orphaned(db, storage, make_user):
    user = make_user()
    rifle = models.RifleSetup(user_id=user.id, name="Rifle", caliber=".308 Win")
    db.add(rifle)
    db.flush()
    key = f"{user.id}/rifles/{rifle.id}/kept.jpg"
    thumb = f"{user.id}/rifles/{rifle.id}/kept_thumb.jpg"
    storage.upload(BUCKET, key, b"k" * 10, "image/jpeg")
    storage.upload(BUCKET, thumb, b"t" * 3, "image/jpeg")
    db.add(
        models.Image(
            user_id=user.id,
            file_name=key,
            thumbnail_file_name=thumb,
            original_file_name="kept.jpg",
            content_type="image/jpeg",
            file_size=10,
            rifle_setup_id=rifle.id,
        )
    )
    db.commit()
    storage.upload(BUCKET, "stale/small.jpg", b"s" * 5, "image/jpeg")
    storage.upload(BUCKET, "stale/large.jpg", b"l" * 50, "image/jpeg")
    return {"kept": [key, thumb], "orphans": ["stale/large.jpg", "stale/small.jpg"]}


def test_find_orphaned_images_sorted_by_size(db, storage, settings, referenced_and_orphaned):
    report = ImageMaintenanceService(db, storage, settings).find_orphaned_images()

    assert [o.object_key for o in report.orphaned_images] == referenced_and_orphaned["orphans"]
    assert report.total_count == 2
    assert report.total_size == 55


def test_delete_orphaned_images_keeps_referenced(db, storage, settings, make_user, referenced_and_orphaned):
    admin = make_user(is_admin=True)

    result = ImageMaintenanceService(db, storage, settings).delete_orphaned_images(admin.id)

    assert result.deleted_count == 2
    assert result.freed_bytes == 55
    assert result.errors == []
    assert storage.keys() == sorted(referenced_and_orphaned["kept"])
    entry = db.query(models.AdminAuditLog).one()
    assert entry.action_type == "orphaned_images_deleted"
    assert entry.metadata_json["freed_bytes"] == 55


def test_delete_orphaned_images_reports_failures(db, storage, settings, make_user, referenced_and_orphaned):
    admin = make_user(is_admin=True)
    storage.fail_delete.add("stale/large.jpg")

    result = ImageMaintenanceService(db, storage, settings).delete_orphaned_images(admin.id)

    assert result.deleted_count == 1
    assert result.freed_bytes == 5
    assert len(result.errors) == 1
    assert "stale/large.jpg" in result.errors[0]
    assert storage.get(BUCKET, "stale/large.jpg") is not None
    assert db.query(models.AdminAuditLog).one().status == "failure"


def test_orphaned_image_endpoints(db, storage, make_user, referenced_and_orphaned, monkeypatch):
    admin = make_user(is_admin=True)
    monkeypatch.setenv("ORPHAN_MIN_AGE_S", "0")
    refresh_settings_cache()

    def _db_override():
        yield db

    app.dependency_overrides[get_db] = _db_override
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        client = TestClient(app)
        headers = {"x-auth-request-email": admin.email}
        r = client.get("/admin/images/stats", headers=headers)
        assert r.status_code == 200
        assert r.json()["total_images"] == 1
        assert r.json()["orphaned_file_count"] == 2

        with get_target_locks().hold(uuid.uuid4()):
            r = client.delete("/admin/images/orphaned", headers=headers)
        assert r.status_code == 409
        assert r.json()["detail"]["code"] == "CLONE_IN_PROGRESS"

        r = client.get("/admin/images/orphaned", headers=headers)
        assert r.status_code == 200
        assert r.json()["total_count"] == 2

        r = client.delete("/admin/images/orphaned", headers=headers)
        assert r.status_code == 200
        assert r.json()["deleted_count"] == 2

        r = client.get("/admin/images/orphaned", headers=headers)
        assert r.json()["orphaned_images"] == []
    finally:
        app.dependency_overrides.clear()


def test_image_stats(db, storage, settings, referenced_and_orphaned):
    service = ImageMaintenanceService(db, storage, settings)

    stats = service.get_image_stats()
    assert stats.total_images == 1
    assert stats.storage_size_bytes == 10 + 3 + 5 + 50
    assert stats.storage_size_formatted == "68 B"
    # Unprocessed images count as missing a thumbnail
    assert stats.missing_thumbnails == 1
    assert stats.orphaned_file_count == 2

    image = db.query(models.Image).one()
    image.is_processed = True
    db.commit()
    assert service.get_image_stats().missing_thumbnails == 0

    image.thumbnail_file_name = None
    db.commit()
    stats = service.get_image_stats()
    assert stats.missing_thumbnails == 1
    assert stats.orphaned_file_count == 3


def test_recent_unreferenced_blobs_are_not_orphans(db, storage):
    storage.upload(BUCKET, "pending/new.jpg", b"n" * 8, "image/jpeg")
    settings = Settings(image_bucket=BUCKET, orphan_min_age_s=600)
    service = ImageMaintenanceService(db, storage, settings, locks=TargetUserLocks())

    assert service.find_orphaned_images().total_count == 0

    storage.backdate(BUCKET, "pending/new.jpg", 601)
    report = service.find_orphaned_images()
    assert [o.object_key for o in report.orphaned_images] == ["pending/new.jpg"]


def test_delete_refused_while_a_clone_holds_a_target(db, storage, settings, make_user, referenced_and_orphaned):
    admin = make_user(is_admin=True)
    locks = TargetUserLocks()
    service = ImageMaintenanceService(db, storage, settings, locks=locks)

    with locks.hold(uuid.uuid4()):
        with pytest.raises(OrphanSweepBlockedError):
            service.delete_orphaned_images(admin.id)

    assert storage.get(BUCKET, "stale/large.jpg") is not None
    assert db.query(models.AdminAuditLog).count() == 0


class _SweepOnFirstUpload:
    """Blob store wrapper that runs ``sweep`` right after the first upload under ``prefix``."""

    def __init__(self, inner, prefix, sweep):
        self.inner = inner
        self.prefix = prefix
        self.sweep = sweep
        self.fired = False

    def upload(self, bucket, key, data, content_type):
        self.inner.upload(bucket, key, data, content_type)
        if not self.fired and key.startswith(self.prefix):
            self.fired = True
            self.sweep()

    def get(self, bucket, key):
        return self.inner.get(bucket, key)

    def delete(self, bucket, key):
        self.inner.delete(bucket, key)

    def list_objects(self, bucket, prefix=""):
        return self.inner.list_objects(bucket, prefix)


def test_sweep_during_clone_keeps_uncommitted_blobs(db, storage, make_user, seed_user_data):
    admin = make_user(is_admin=True)
    source = make_user()
    target = make_user()
    seed_user_data(source)
    target_id = target.id
    # One blob worker keeps the transfer on this thread, next to the session
    settings = Settings(image_bucket=BUCKET, clone_blob_workers=1, orphan_min_age_s=3600)
    locks = TargetUserLocks()
    maintenance = ImageMaintenanceService(db, storage, settings, locks=locks)
    seen = {}

    def _sweep():
        seen["found"] = [o.object_key for o in maintenance.find_orphaned_images().orphaned_images]
        try:
            maintenance.delete_orphaned_images(admin.id)
            seen["blocked"] = False
        except OrphanSweepBlockedError:
            seen["blocked"] = True

    wrapped = _SweepOnFirstUpload(storage, f"{target_id}/", _sweep)
    result = UserDataCloneService(db, wrapped, settings=settings, locks=locks).clone_user_data(
        source.id, target_id, admin.id
    )

    assert result.success is True
    assert seen["blocked"] is True
    assert not [key for key in seen["found"] if key.startswith(f"{target_id}/")]
    images = db.execute(select(models.Image).where(models.Image.user_id == target_id)).scalars().all()
    assert len(images) == 2
    for image in images:
        assert storage.get(BUCKET, image.file_name) is not None
        if image.thumbnail_file_name:
            assert storage.get(BUCKET, image.thumbnail_file_name) is not None
