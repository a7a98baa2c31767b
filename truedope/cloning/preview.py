"""Read-only per-user data counts, using the same ownership predicates as clone."""
from __future__ import annotations

import uuid
from typing import Dict, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from truedope.db.schemas import DataCounts
from .graph import ENTITY_KINDS, EntityKind, owned_filter


def get_data_counts(db: Session, user_id: uuid.UUID, kinds: Sequence[EntityKind] = ENTITY_KINDS) -> DataCounts:
    by_name = {kind.name: kind for kind in kinds}
    counts: Dict[str, int] = {}
    for kind in kinds:
        stmt = select(func.count()).select_from(kind.model).where(owned_filter(kind, user_id, by_name))
        counts[kind.name] = db.execute(stmt).scalar_one()
    preferences = counts.pop("user_preferences", 0)
    return DataCounts(has_user_preferences=preferences > 0, **counts)
