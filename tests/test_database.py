import json

from lending_library.database import SnapshotStore, migrate_from_json


def test_load_empty_store(db_file):
    assert SnapshotStore(db_file).load() is None


def test_save_and_load(db_file):
    store = SnapshotStore(db_file)
    snapshot = {
        "users": [{"id": "U001", "name": "Ana García", "type": "Student", "activeLoans": 0}],
        "books": [],
        "loans": [],
    }

    assert store.save(snapshot) is True
    assert SnapshotStore(db_file).load() == snapshot


def test_save_overwrites_previous_snapshot(db_file):
    store = SnapshotStore(db_file)
    store.save({"users": [], "books": [{"id": "L001", "title": "A b", "author": "C d", "available": True}], "loans": []})
    store.save({"users": [], "books": [], "loans": []})
    assert store.load() == {"users": [], "books": [], "loans": []}


def test_separate_keys_do_not_mix(db_file):
    SnapshotStore(db_file, key="branch_a").save({"users": [], "books": [], "loans": [{"id": 1}]})
    assert SnapshotStore(db_file, key="branch_b").load() is None


def test_save_unserializable_returns_false(db_file, caplog):
    store = SnapshotStore(db_file)
    assert store.save({"users": [object()]}) is False
    assert "could not be serialized" in caplog.text
    assert store.load() is None


def test_clear(db_file):
    store = SnapshotStore(db_file)
    store.save({"users": [], "books": [], "loans": []})
    store.clear()
    assert store.load() is None


def test_migrate_from_json(tmp_path, db_file):
    legacy = tmp_path / "library.json"
    legacy.write_text(json.dumps({"users": [], "books": [{"id": "L001", "title": "Cálculo I",
                                                          "author": "Stewart", "available": True}]}),
                      encoding="utf-8")
    store = SnapshotStore(db_file)

    assert migrate_from_json(store, str(legacy)) is True
    assert store.load()["books"][0]["title"] == "Cálculo I"
    assert store.load()["loans"] == []
    # one-time only
    assert migrate_from_json(store, str(legacy)) is False


def test_migrate_skips_missing_or_foreign_files(tmp_path, db_file):
    store = SnapshotStore(db_file)
    assert migrate_from_json(store, str(tmp_path / "absent.json")) is False

    other = tmp_path / "other.json"
    other.write_text(json.dumps([{"isbn": "123"}]), encoding="utf-8")
    assert migrate_from_json(store, str(other)) is False

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert migrate_from_json(store, str(broken)) is False
    assert store.load() is None
