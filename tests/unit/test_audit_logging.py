import uuid

from truedope.audit import AuditAction, AuditStatus, log, log_orphaned_images_deleted, log_user_data_clone
from truedope.db import crud, models, schemas


def test_log_basic(db, make_user):
    admin = make_user(is_admin=True)
    target = make_user()
    entry = log(
        db,
        action=AuditAction.USER_DATA_CLONED,
        status=AuditStatus.SUCCESS,
        admin_user_id=admin.id,
        target_user_id=target.id,
        target_type="user",
        target_id=str(target.id),
        metadata={"foo": "bar"},
    )
    assert entry.action_type == "user_data_cloned"
    assert entry.status == "success"
    assert entry.target_user_id == target.id
    assert entry.metadata_json == {"foo": "bar"}


def test_log_accepts_plain_strings(db, make_user):
    admin = make_user(is_admin=True)
    entry = log(db, action="custom_action", status="custom_status", admin_user_id=admin.id)
    assert entry.action_type == "custom_action"
    assert entry.status == "custom_status"
    assert entry.metadata_json == {}


def test_log_user_data_clone_payload(db, make_user):
    admin = make_user(is_admin=True)
    source = make_user()
    target = make_user()
    stats = schemas.CloneStatistics(rifle_setups_copied=2, images_deleted=1)
    stats.record_skipped("chrono_sessions")

    entry = log_user_data_clone(
        db,
        admin_user_id=admin.id,
        source_user_id=source.id,
        target_user_id=target.id,
        statistics=stats,
        duration_ms=42,
    )

    assert entry.metadata_json["source_user_id"] == str(source.id)
    assert entry.metadata_json["duration_ms"] == 42
    assert entry.metadata_json["statistics"]["rifle_setups_copied"] == 2
    assert entry.metadata_json["statistics"]["rows_skipped"] == {"chrono_sessions": 1}


def test_orphan_sweep_failure_status(db, make_user):
    admin = make_user(is_admin=True)
    entry = log_orphaned_images_deleted(db, admin_user_id=admin.id, deleted_count=3, freed_bytes=10, error_count=1)
    assert entry.status == AuditStatus.FAILURE.value
    assert entry.target_type == "image_bucket"


def test_audit_log_query_filters_and_schema(db, make_user):
    admin = make_user(is_admin=True)
    other_admin = make_user(is_admin=True)
    target = make_user()
    log(db, action=AuditAction.USER_DATA_CLONED, admin_user_id=admin.id, target_user_id=target.id)
    log(db, action=AuditAction.ORPHANED_IMAGES_DELETED, admin_user_id=other_admin.id, metadata={"deleted_count": 1})

    by_admin = crud.get_admin_audit_logs(db, admin_user_id=admin.id)
    assert [e.action_type for e in by_admin] == ["user_data_cloned"]
    by_action = crud.get_admin_audit_logs(db, action_type="orphaned_images_deleted")
    assert len(by_action) == 1
    assert crud.get_admin_audit_logs(db, target_user_id=uuid.uuid4()) == []

    dto = schemas.AdminAuditLog.model_validate(by_action[0])
    assert dto.metadata == {"deleted_count": 1}
    assert dto.admin_user_id == other_admin.id
