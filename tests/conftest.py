import os
import threading
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

# Force the engine module onto in-memory SQLite before anything imports it
os.environ.setdefault("PYTEST_RUNNING", "1")

from truedope.db import crud, models, schemas  # noqa: E402
from truedope.db.database import SessionLocal, engine  # noqa: E402
from truedope.storage import StorageError, StorageObject  # noqa: E402
from truedope.utils.settings import Settings, refresh_settings_cache  # noqa: E402

BUCKET = "truedope-images"


class InMemoryStorage:
    """Blob store fake with switchable failures, safe for the clone worker pool."""

    def __init__(self):
        self.objects = {}
        self.content_types = {}
        self.uploaded_at = {}
        self.fail_get = set()
        self.fail_delete = set()
        self.fail_upload_prefixes = []
        self._lock = threading.Lock()

    def upload(self, bucket, key, data, content_type):
        if any(key.startswith(prefix) for prefix in self.fail_upload_prefixes):
            raise StorageError("upload", key, "injected upload failure")
        with self._lock:
            self.objects[(bucket, key)] = bytes(data)
            self.content_types[(bucket, key)] = content_type
            self.uploaded_at[(bucket, key)] = datetime.now(timezone.utc)

    def get(self, bucket, key):
        if key in self.fail_get:
            raise StorageError("get", key, "injected get failure")
        with self._lock:
            return self.objects.get((bucket, key))

    def delete(self, bucket, key):
        if key in self.fail_delete:
            raise StorageError("delete", key, "injected delete failure")
        with self._lock:
            self.objects.pop((bucket, key), None)
            self.content_types.pop((bucket, key), None)
            self.uploaded_at.pop((bucket, key), None)

    def list_objects(self, bucket, prefix=""):
        with self._lock:
            return [
                StorageObject(key=key, size=len(data), last_modified=self.uploaded_at[(b, key)])
                for (b, key), data in sorted(self.objects.items())
                if b == bucket and key.startswith(prefix)
            ]

    def backdate(self, bucket, key, seconds):
        with self._lock:
            self.uploaded_at[(bucket, key)] -= timedelta(seconds=seconds)

    def keys(self, prefix=""):
        with self._lock:
            return sorted(key for (_, key) in self.objects if key.startswith(prefix))


@pytest.fixture(scope="session", autouse=True)
def _schema():
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(_schema):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for t in reversed(models.Base.metadata.sorted_tables):
            session.execute(t.delete())
        session.commit()
        session.close()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def settings():
    return Settings(image_bucket=BUCKET, clone_blob_workers=4, clone_strict_mapping=False, orphan_min_age_s=0)


@pytest.fixture(autouse=True)
def _fresh_settings():
    refresh_settings_cache()
    yield
    refresh_settings_cache()


@pytest.fixture
def make_user(db):
    def _make(is_admin=False, email=None):
        return crud.create_user(
            db,
            schemas.UserCreate(
                email=email or f"shooter_{uuid.uuid4().hex[:10]}@example.com",
                display_name="shooter",
                is_admin=is_admin,
            ),
        )

    return _make


def _store_image(storage, user_id, folder, parent_id, *, thumbnail=True, size=2048):
    key = f"{user_id}/{folder}/{parent_id}/{uuid.uuid4()}.jpg"
    storage.upload(BUCKET, key, b"\xff\xd8" + os.urandom(32), "image/jpeg")
    thumb_key = None
    if thumbnail:
        thumb_key = f"{user_id}/{folder}/{parent_id}/{uuid.uuid4()}_thumb.jpg"
        storage.upload(BUCKET, thumb_key, b"\xff\xd8thumb", "image/jpeg")
    return key, thumb_key, size


@pytest.fixture
def seed_user_data(db, storage):
    """Create a full owned data set for a user, with image blobs in ``storage``."""

    def _seed(user, *, with_images=True):
        location = models.SavedLocation(user_id=user.id, name="Home Range", latitude=45.1, longitude=-122.7, altitude=120.0)
        rifle = models.RifleSetup(user_id=user.id, name="Precision .308", caliber=".308 Win", zero_distance=100)
        ammo = models.Ammunition(user_id=user.id, manufacturer="Hornady", name="ELD Match", caliber=".308 Win", grain=168)
        db.add_all([location, rifle, ammo])
        db.flush()

        lot = models.AmmoLot(
            user_id=user.id,
            ammunition_id=ammo.id,
            lot_number="L-001",
            initial_quantity=50,
            purchase_price=Decimal("25.00"),
        )
        session = models.RangeSession(
            user_id=user.id,
            rifle_setup_id=rifle.id,
            saved_location_id=location.id,
            session_date=date(2026, 5, 1),
            temperature=68.0,
        )
        db.add_all([lot, session])
        db.flush()

        chrono = models.ChronoSession(
            range_session_id=session.id,
            ammunition_id=ammo.id,
            ammo_lot_id=lot.id,
            number_of_rounds=3,
            average_velocity=2651.0,
        )
        dope = models.DopeEntry(
            range_session_id=session.id,
            ammunition_id=ammo.id,
            distance=300,
            elevation_mils=1.6,
            windage_mils=0.2,
        )
        group = models.GroupEntry(
            range_session_id=session.id,
            ammunition_id=ammo.id,
            ammo_lot_id=lot.id,
            distance=100,
            number_of_shots=5,
            group_size_moa=0.6,
        )
        db.add_all([chrono, dope, group])
        db.flush()

        readings = [
            models.VelocityReading(chrono_session_id=chrono.id, shot_number=n, velocity=2640 + n)
            for n in range(1, 4)
        ]
        db.add_all(readings)

        images = []
        if with_images:
            key, thumb, size = _store_image(storage, user.id, "rifles", rifle.id)
            images.append(
                models.Image(
                    user_id=user.id,
                    file_name=key,
                    thumbnail_file_name=thumb,
                    original_file_name="rifle.jpg",
                    content_type="image/jpeg",
                    file_size=size,
                    rifle_setup_id=rifle.id,
                )
            )
            key, thumb, size = _store_image(storage, user.id, "groups", group.id, thumbnail=False, size=4096)
            images.append(
                models.Image(
                    user_id=user.id,
                    file_name=key,
                    thumbnail_file_name=thumb,
                    original_file_name="group.jpg",
                    content_type="image/jpeg",
                    file_size=size,
                    group_entry_id=group.id,
                )
            )
            db.add_all(images)
            db.flush()

        measurement = models.GroupMeasurement(
            group_entry_id=group.id,
            hole_positions=[{"x": 0.12, "y": -0.05}, {"x": -0.08, "y": 0.1}],
            bullet_diameter=0.308,
            extreme_spread_ctc=0.62,
            calibration_method="manual",
            original_image_id=images[1].id if images else None,
        )
        preferences = models.UserPreferences(user_id=user.id, distance_unit="meters")
        db.add_all([measurement, preferences])
        db.commit()
        return {
            "location": location,
            "rifle": rifle,
            "ammo": ammo,
            "lot": lot,
            "session": session,
            "chrono": chrono,
            "dope": dope,
            "group": group,
            "readings": readings,
            "images": images,
            "measurement": measurement,
        }

    return _seed
