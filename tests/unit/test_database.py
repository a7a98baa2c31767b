import uuid

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from truedope.db import models


def test_sqlite_connections_enforce_foreign_keys(db):
    assert db.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_row_with_missing_owner_is_rejected(db):
    db.add(models.SavedLocation(user_id=uuid.uuid4(), name="Nowhere", latitude=0.0, longitude=0.0))
    with pytest.raises(IntegrityError):
        db.flush()
