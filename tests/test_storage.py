"""
Tests for storage backends and atomic units
"""

import pytest
import tempfile
from pathlib import Path

from budget_ledger.storage import (
    InMemoryStorage, SQLiteStorage, DuplicateRecordError, create_storage
)


test_data = {
    "id": "test_001",
    "name": "Test Record",
    "amount": "100.50"
}


def make_backends():
    return [InMemoryStorage(), SQLiteStorage(":memory:")]


class TestStorageBackends:
    """CRUD behaviour shared by all backends"""

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_basic_operations(self, storage):
        """Test save, load, find, count and delete"""
        storage.save("test_table", "record_1", test_data)
        assert storage.load("test_table", "record_1") == test_data

        assert storage.exists("test_table", "record_1")
        assert not storage.exists("test_table", "non_existent")
        assert storage.load("test_table", "non_existent") is None

        storage.save("test_table", "record_2", {"id": "record_2", "name": "Other"})
        assert len(storage.load_all("test_table")) == 2

        results = storage.find("test_table", {"name": "Test Record"})
        assert len(results) == 1
        assert results[0]["id"] == "test_001"

        assert storage.count("test_table") == 2

        assert storage.delete("test_table", "record_1")
        assert not storage.delete("test_table", "record_1")
        assert storage.count("test_table") == 1

        storage.clear_table("test_table")
        assert storage.count("test_table") == 0
        storage.close()

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_insert_rejects_duplicate_id(self, storage):
        storage.insert("test_table", "record_1", test_data)

        with pytest.raises(DuplicateRecordError):
            storage.insert("test_table", "record_1", {"id": "record_1", "name": "Again"})

        assert storage.load("test_table", "record_1") == test_data

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_update_keeps_insertion_order(self, storage):
        storage.save("test_table", "a", {"id": "a", "v": 1})
        storage.save("test_table", "b", {"id": "b", "v": 1})
        storage.save("test_table", "a", {"id": "a", "v": 2})

        records = storage.load_all("test_table")
        assert [r["id"] for r in records] == ["a", "b"]
        assert records[0]["v"] == 2

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_loaded_records_are_copies(self, storage):
        storage.save("test_table", "record_1", {"id": "record_1", "tags": ["x"]})

        loaded = storage.load("test_table", "record_1")
        loaded["tags"].append("y")

        assert storage.load("test_table", "record_1")["tags"] == ["x"]


class TestAtomic:
    """Atomic units commit all writes or none"""

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_commit(self, storage):
        with storage.atomic():
            storage.save("t", "1", {"id": "1"})
            storage.insert("t", "2", {"id": "2"})

        assert storage.count("t") == 2

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_rollback_on_error(self, storage):
        storage.save("t", "1", {"id": "1", "balance": "10"})

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("t", "1", {"id": "1", "balance": "0"})
                storage.insert("t", "2", {"id": "2"})
                storage.delete("t", "1")
                raise RuntimeError("boom")

        assert storage.load("t", "1") == {"id": "1", "balance": "10"}
        assert not storage.exists("t", "2")

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_nested_blocks_roll_back_together(self, storage):
        with pytest.raises(ValueError):
            with storage.atomic():
                storage.save("t", "outer", {"id": "outer"})
                with storage.atomic():
                    storage.save("t", "inner", {"id": "inner"})
                raise ValueError("outer failure")

        assert storage.count("t") == 0

    @pytest.mark.parametrize("storage", make_backends(), ids=["memory", "sqlite"])
    def test_usable_after_rollback(self, storage):
        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("t", "1", {"id": "1"})
                raise RuntimeError("boom")

        with storage.atomic():
            storage.save("t", "2", {"id": "2"})

        assert [r["id"] for r in storage.load_all("t")] == ["2"]


class TestSQLitePersistence:

    def test_data_survives_reopen(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = Path(temp_dir) / "ledger.db"

            storage = SQLiteStorage(db_path)
            with storage.atomic():
                storage.save("banks", "b1", {"id": "b1", "balance": "12.50"})
            storage.close()

            reopened = SQLiteStorage(db_path)
            assert reopened.load("banks", "b1") == {"id": "b1", "balance": "12.50"}
            reopened.close()


class TestCreateStorage:

    def test_memory_url(self):
        assert isinstance(create_storage("memory://"), InMemoryStorage)

    def test_sqlite_memory_url(self):
        storage = create_storage("sqlite://")
        assert isinstance(storage, SQLiteStorage)
        assert storage.db_path == ":memory:"

    def test_sqlite_file_url(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "x.db"
            storage = create_storage(f"sqlite:///{path}")
            assert storage.db_path == str(path)
            storage.close()

    def test_unknown_url(self):
        with pytest.raises(ValueError, match="Unsupported database URL"):
            create_storage("postgresql://localhost/ledger")
