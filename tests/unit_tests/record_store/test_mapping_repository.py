import sqlite3


def test_init_db_creates_tables(db_path):
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cursor.fetchall()}
    conn.close()

    assert {"records", "remote_id_mapping", "remote_id_metadata", "files"} <= tables


def test_get_unmapped_returns_zero(mapping_repository):
    assert mapping_repository.get("file", "nope") == 0
    assert not mapping_repository.exists("file", "nope")


def test_set_is_an_upsert(mapping_repository):
    mapping_repository.set("file", "r-1", 4)
    mapping_repository.set("file", "r-1", 4)
    assert mapping_repository.get("file", "r-1") == 4

    mapping_repository.set("file", "r-1", 9)
    assert mapping_repository.get("file", "r-1") == 9


def test_get_with_other_table_returns_zero(mapping_repository):
    mapping_repository.set("article", "r-2", 3)

    assert mapping_repository.get("file", "r-2") == 0
    assert mapping_repository.get("article", "r-2") == 3


def test_same_remote_id_in_two_tables_is_independent(mapping_repository):
    mapping_repository.set("article", "x-1", 1)
    mapping_repository.set("page", "x-1", 7)
    mapping_repository.set_metadata_value("article", "x-1", "handler", {"hash": "a"})

    assert mapping_repository.get("article", "x-1") == 1
    assert mapping_repository.get("page", "x-1") == 7
    assert mapping_repository.get_metadata_value("page", "x-1", "handler") is None

    mapping_repository.remove("page", "x-1")

    assert mapping_repository.get("page", "x-1") == 0
    assert mapping_repository.get("article", "x-1") == 1
    assert mapping_repository.get_metadata_value("article", "x-1", "handler") == {"hash": "a"}


def test_remote_id_for_uid(mapping_repository):
    mapping_repository.set("file", "r-5", 12)

    assert mapping_repository.remote_id_for("file", 12) == "r-5"
    assert mapping_repository.remote_id_for("article", 12) is None
    assert mapping_repository.remote_id_for("file", 13) is None


def test_metadata_is_replaced_not_merged(mapping_repository):
    mapping_repository.set_metadata_value("file", "r-3", "handler", {"date": "d1", "etag": "e1"})
    mapping_repository.set_metadata_value("file", "r-3", "handler", {"etag": "e2"})

    assert mapping_repository.get_metadata_value("file", "r-3", "handler") == {"etag": "e2"}
    assert mapping_repository.get_metadata_value("file", "r-3", "other") is None


def test_remove_drops_mapping_and_metadata(mapping_repository):
    mapping_repository.set("file", "r-4", 1)
    mapping_repository.set_metadata_value("file", "r-4", "handler", {"etag": "x"})

    mapping_repository.remove("file", "r-4")

    assert mapping_repository.get("file", "r-4") == 0
    assert mapping_repository.remote_id_for("file", 1) is None
    assert mapping_repository.get_metadata_value("file", "r-4", "handler") is None
