"""Unit tests for auth/store.py -- the JSON-file RecordStore.

Covers:
- lazy initialization creates the directory and an empty collection
- empty files count as zero records
- write() replaces the whole collection and leaves no temp files behind
- corrupt or malformed content raises StoreUnavailable (never "zero records")
- transaction() writes on success, writes nothing when the block raises
- read_all() is not blocked by an open transaction
"""

from __future__ import annotations

import json
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from auth.errors import StoreUnavailable
from auth.models import UserRecord
from auth.store import RecordStore


def _record(n: int) -> UserRecord:
    return UserRecord(
        id=f"id-{n}",
        name=f"User {n}",
        email=f"user{n}@example.com",
        password_hash=f"$2b$04$hash{n}",
        created_at="2024-01-01T00:00:00+00:00",
        updated_at="2024-01-01T00:00:00+00:00",
    )


class TestInitialization:
    def test_first_read_creates_container(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "users.json"
        store = RecordStore(path)
        assert store.read_all() == []
        assert path.exists()
        assert json.loads(path.read_text()) == []

    def test_existing_file_is_not_clobbered(self, tmp_path):
        path = tmp_path / "users.json"
        RecordStore(path).write([_record(1)])
        # A fresh store instance must not reset the file on init.
        assert [r.id for r in RecordStore(path).read_all()] == ["id-1"]

    def test_empty_file_is_zero_records(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("")
        assert RecordStore(path).read_all() == []

    def test_whitespace_file_is_zero_records(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("  \n")
        assert RecordStore(path).read_all() == []

    def test_unusable_parent_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("i am a file, not a directory")
        store = RecordStore(blocker / "users.json")
        with pytest.raises(StoreUnavailable):
            store.read_all()


class TestReadWrite:
    def test_write_then_read_preserves_order(self, store):
        store.write([_record(1), _record(2), _record(3)])
        assert [r.id for r in store.read_all()] == ["id-1", "id-2", "id-3"]

    def test_write_replaces_entire_collection(self, store):
        store.write([_record(1), _record(2)])
        store.write([_record(3)])
        assert [r.id for r in store.read_all()] == ["id-3"]

    def test_file_is_human_readable_json(self, store):
        store.write([_record(1)])
        text = store.path.read_text()
        assert "\n  " in text  # pretty-printed
        assert json.loads(text)[0]["email"] == "user1@example.com"

    def test_no_temp_files_left_behind(self, store):
        store.write([_record(1)])
        store.write([_record(2)])
        leftovers = [p.name for p in store.path.parent.iterdir() if p.name != store.path.name]
        assert leftovers == []

    def test_read_returns_independent_copies(self, store):
        store.write([_record(1)])
        first = store.read_all()
        first[0].name = "mutated"
        assert store.read_all()[0].name == "User 1"


class TestCorruption:
    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            '{"id": "x"}',
            '["just a string"]',
            '[{"id": "x", "name": "no other fields"}]',
        ],
    )
    def test_corrupt_content_raises(self, tmp_path, content):
        path = tmp_path / "users.json"
        path.write_text(content)
        with pytest.raises(StoreUnavailable):
            RecordStore(path).read_all()

    def test_corrupt_store_is_not_overwritten_by_transaction(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("{not json")
        store = RecordStore(path)
        with pytest.raises(StoreUnavailable):
            with store.transaction() as records:
                records.append(_record(1))
        assert path.read_text() == "{not json"


class TestTransaction:
    def test_changes_are_committed(self, store):
        with store.transaction() as records:
            records.append(_record(1))
        assert [r.id for r in store.read_all()] == ["id-1"]

    def test_exception_discards_changes(self, store):
        store.write([_record(1)])
        with pytest.raises(RuntimeError):
            with store.transaction() as records:
                records.append(_record(2))
                raise RuntimeError("abort")
        assert [r.id for r in store.read_all()] == ["id-1"]

    def test_unchanged_collection_is_not_rewritten(self, store):
        store.write([_record(1)])
        before = store.path.stat().st_mtime_ns
        inode = store.path.stat().st_ino
        with store.transaction():
            pass
        assert store.path.stat().st_ino == inode
        assert store.path.stat().st_mtime_ns == before

    def test_reads_see_committed_snapshot_while_transaction_open(self, store):
        store.write([_record(1)])
        entered = threading.Event()
        release = threading.Event()

        def hold_open():
            with store.transaction() as records:
                records.append(_record(2))
                entered.set()
                release.wait(timeout=5)

        with ThreadPoolExecutor(max_workers=2) as pool:
            writer = pool.submit(hold_open)
            assert entered.wait(timeout=5)
            try:
                snapshot = pool.submit(store.read_all).result(timeout=5)
            finally:
                release.set()
            writer.result(timeout=5)

        assert [r.id for r in snapshot] == ["id-1"]
        assert [r.id for r in store.read_all()] == ["id-1", "id-2"]
