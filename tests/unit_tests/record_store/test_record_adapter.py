import pytest

from record_store import RecordExistsError


def test_create_assigns_increasing_uids(record_adapter):
    first = record_adapter.create_record("article", {"title": "One"})
    second = record_adapter.create_record("article", {"title": "Two"})

    assert (first, second) == (1, 2)
    assert record_adapter.count_records("article") == 2


def test_create_with_uid_uses_it(record_adapter):
    uid = record_adapter.create_record("file", {"title": "Logo"}, uid=42)

    assert uid == 42
    assert record_adapter.get_record("file", 42) == {"uid": 42, "title": "Logo"}


def test_update_merges_fields(record_adapter):
    uid = record_adapter.create_record("article", {"title": "One", "body": "text"})

    assert record_adapter.update_record("article", uid, {"title": "Uno"})
    assert record_adapter.get_record("article", uid) == {"uid": uid, "title": "Uno", "body": "text"}


def test_update_missing_record_returns_false(record_adapter):
    assert not record_adapter.update_record("article", 99, {"title": "x"})


def test_get_record_limits_fields(record_adapter):
    uid = record_adapter.create_record("article", {"title": "One", "body": "text"})

    assert record_adapter.get_record("article", uid, ["title"]) == {"uid": uid, "title": "One"}


def test_get_record_excludes_deleted_and_invalid(record_adapter):
    uid = record_adapter.create_record("article", {"title": "One"})
    assert record_adapter.delete_record("article", uid)

    assert record_adapter.get_record("article", uid) is None
    assert record_adapter.get_record("article", 0) is None
    assert record_adapter.get_record("unknown", 1) is None
    assert not record_adapter.delete_record("article", uid)


def test_create_with_uid_of_live_record_raises(record_adapter):
    record_adapter.create_record("file", {"title": "Logo"}, uid=42)

    with pytest.raises(RecordExistsError):
        record_adapter.create_record("file", {"title": "Other"}, uid=42)

    assert record_adapter.get_record("file", 42) == {"uid": 42, "title": "Logo"}


def test_create_with_uid_of_deleted_record_replaces_it(record_adapter):
    record_adapter.create_record("file", {"title": "Logo", "alt": "old"}, uid=42)
    record_adapter.delete_record("file", 42)

    uid = record_adapter.create_record("file", {"title": "New"}, uid=42)

    assert uid == 42
    assert record_adapter.get_record("file", 42) == {"uid": 42, "title": "New"}
    assert record_adapter.count_records("file") == 1
