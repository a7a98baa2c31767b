"""
Owned-entity dependency graph.

Every entity kind a user owns is declared once here together with the
columns that reference other owned kinds. The copy pipeline, the deletion
order and the ownership predicates used by preview, deletion and copy are
all derived from these declarations, so adding an owned kind means adding
one ``EntityKind`` entry.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select

from truedope.db import models


@dataclass(frozen=True)
class Reference:
    """A column pointing at another owned kind.

    Required references skip the row when the parent was not copied;
    optional ones degrade to NULL.
    """

    column: str
    kind: str
    required: bool = True


@dataclass(frozen=True)
class EntityKind:
    name: str
    model: type
    references: Tuple[Reference, ...] = ()
    # Exactly one of owner_column / owned_via is set
    owner_column: Optional[str] = None
    owned_via: Optional[str] = None
    pk: str = "id"
    timestamp_columns: Tuple[str, ...] = ("created_at", "updated_at")

    def reference(self, column: str) -> Reference:
        for ref in self.references:
            if ref.column == column:
                return ref
        raise KeyError(f"{self.name} has no reference column {column}")

    @property
    def parents(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(ref.kind for ref in self.references))


ENTITY_KINDS: Tuple[EntityKind, ...] = (
    EntityKind(
        "user_preferences",
        models.UserPreferences,
        owner_column="user_id",
        pk="user_id",
    ),
    EntityKind("saved_locations", models.SavedLocation, owner_column="user_id"),
    EntityKind("rifle_setups", models.RifleSetup, owner_column="user_id"),
    EntityKind("ammunition", models.Ammunition, owner_column="user_id"),
    EntityKind(
        "ammo_lots",
        models.AmmoLot,
        references=(Reference("ammunition_id", "ammunition"),),
        owner_column="user_id",
    ),
    EntityKind(
        "range_sessions",
        models.RangeSession,
        references=(
            Reference("rifle_setup_id", "rifle_setups"),
            Reference("saved_location_id", "saved_locations", required=False),
        ),
        owner_column="user_id",
    ),
    EntityKind(
        "chrono_sessions",
        models.ChronoSession,
        references=(
            Reference("range_session_id", "range_sessions"),
            Reference("ammunition_id", "ammunition"),
            Reference("ammo_lot_id", "ammo_lots", required=False),
        ),
        owned_via="range_session_id",
    ),
    EntityKind(
        "velocity_readings",
        models.VelocityReading,
        references=(Reference("chrono_session_id", "chrono_sessions"),),
        owned_via="chrono_session_id",
        timestamp_columns=("created_at",),
    ),
    EntityKind(
        "dope_entries",
        models.DopeEntry,
        references=(
            Reference("range_session_id", "range_sessions"),
            Reference("ammunition_id", "ammunition", required=False),
            Reference("ammo_lot_id", "ammo_lots", required=False),
        ),
        owned_via="range_session_id",
        timestamp_columns=("created_at",),
    ),
    EntityKind(
        "group_entries",
        models.GroupEntry,
        references=(
            Reference("range_session_id", "range_sessions"),
            Reference("ammunition_id", "ammunition", required=False),
            Reference("ammo_lot_id", "ammo_lots", required=False),
        ),
        owned_via="range_session_id",
    ),
    EntityKind(
        "images",
        models.Image,
        # Exactly one of these is populated per row; a populated one must map
        references=(
            Reference("rifle_setup_id", "rifle_setups"),
            Reference("range_session_id", "range_sessions"),
            Reference("group_entry_id", "group_entries"),
        ),
        owner_column="user_id",
        timestamp_columns=("uploaded_at",),
    ),
    EntityKind(
        "group_measurements",
        models.GroupMeasurement,
        references=(
            Reference("group_entry_id", "group_entries"),
            Reference("original_image_id", "images", required=False),
            Reference("annotated_image_id", "images", required=False),
        ),
        owned_via="group_entry_id",
    ),
)

KINDS_BY_NAME: Dict[str, EntityKind] = {kind.name: kind for kind in ENTITY_KINDS}


def _validate(kinds: Sequence[EntityKind]) -> Dict[str, EntityKind]:
    by_name = {kind.name: kind for kind in kinds}
    if len(by_name) != len(kinds):
        raise ValueError("Duplicate entity kind names")
    for kind in kinds:
        if (kind.owner_column is None) == (kind.owned_via is None):
            raise ValueError(f"{kind.name} must declare exactly one of owner_column / owned_via")
        for ref in kind.references:
            if ref.kind not in by_name:
                raise ValueError(f"{kind.name}.{ref.column} references unknown kind {ref.kind}")
        if kind.owned_via is not None and not kind.reference(kind.owned_via).required:
            raise ValueError(f"{kind.name} inherits ownership through optional reference {kind.owned_via}")
    return by_name


def pipeline_order(kinds: Sequence[EntityKind] = ENTITY_KINDS) -> List[EntityKind]:
    """Return kinds ordered so every referenced kind precedes its dependents.

    Kinds that become ready together keep their declaration order. Raises
    ``graphlib.CycleError`` when the declarations are cyclic.
    """
    by_name = _validate(kinds)
    position = {kind.name: index for index, kind in enumerate(kinds)}
    graph = {kind.name: set(kind.parents) for kind in kinds}

    sorter = TopologicalSorter(graph)
    sorter.prepare()
    ordered: List[EntityKind] = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready(), key=position.__getitem__)
        for name in ready:
            ordered.append(by_name[name])
        sorter.done(*ready)
    return ordered


def deletion_order(kinds: Sequence[EntityKind] = ENTITY_KINDS) -> List[EntityKind]:
    """Children before parents: the exact reverse of the copy pipeline."""
    return list(reversed(pipeline_order(kinds)))


def owned_filter(kind: EntityKind, user_id: uuid.UUID, kinds_by_name: Optional[Dict[str, EntityKind]] = None):
    """SQL predicate selecting rows of ``kind`` owned by ``user_id``.

    Kinds without an owner column inherit ownership from the parent they
    reference, resolved recursively as an IN-subquery.
    """
    kinds_by_name = kinds_by_name or KINDS_BY_NAME
    if kind.owner_column is not None:
        return getattr(kind.model, kind.owner_column) == user_id
    parent = kinds_by_name[kind.reference(kind.owned_via).kind]
    parent_ids = select(getattr(parent.model, parent.pk)).where(owned_filter(parent, user_id, kinds_by_name))
    return getattr(kind.model, kind.owned_via).in_(parent_ids)


PIPELINE: Tuple[EntityKind, ...] = tuple(pipeline_order())

__all__ = [
    "CycleError",
    "Reference",
    "EntityKind",
    "ENTITY_KINDS",
    "KINDS_BY_NAME",
    "PIPELINE",
    "pipeline_order",
    "deletion_order",
    "owned_filter",
]
