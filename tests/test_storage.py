"""Tests for the JSON snapshot store and its advisory lock file.

Every test uses an isolated ``tmp_path`` as the storage base.
"""

from __future__ import annotations

import gc
import os
import threading
import time

import pytest

from hyperlog.engine import Engine
from hyperlog.errors import LockedError, ParseError, StorageIOError
from hyperlog.models import Item, Section
from hyperlog.storage import LOCK_PAYLOAD, Storage


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def storage(tmp_path):
    s = Storage(tmp_path)
    yield s
    s.close()


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

class TestLayout:
    def test_paths(self, tmp_path, storage):
        assert storage.state_path == tmp_path / "hyperlog" / "graph.json"
        assert storage.lock_path == tmp_path / "hyperlog" / "graph.lock"

    def test_info(self, tmp_path, storage):
        assert storage.info() == f"storage:\n\tgraph: {tmp_path / 'hyperlog' / 'graph.json'}"

    def test_with_base(self, tmp_path, storage):
        storage.with_base(tmp_path / "other")
        assert storage.state_path == tmp_path / "other" / "hyperlog" / "graph.json"

    def test_defaults_to_settings_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr("hyperlog.config.settings.data_dir", tmp_path)
        assert Storage().state_path == tmp_path / "hyperlog" / "graph.json"


# ---------------------------------------------------------------------------
# Load / store
# ---------------------------------------------------------------------------

class TestLoadStore:
    def test_missing_snapshot_gives_empty_engine(self, storage):
        assert storage.load().get_roots() is None

    def test_store_writes_pretty_json(self, storage):
        engine = storage.load()
        engine.create_root("can_create_state")
        storage.store(engine)
        assert storage.state_path.read_text(encoding="utf-8") == (
            '{\n  "can_create_state": {\n    "type": "user"\n  }\n}'
        )

    def test_round_trip_through_disk(self, tmp_path, storage):
        engine = storage.load()
        engine.create_root("alice")
        engine.create("alice", ["inbox"], Section())
        engine.create("alice", ["inbox", "buy-milk"], Item("buy milk"))
        storage.store(engine)
        storage.unlock()

        with Storage(tmp_path) as again:
            reloaded = again.load()
        assert reloaded.get("alice", ["inbox", "buy-milk"]) == Item("buy milk")

    def test_corrupt_snapshot(self, storage):
        storage.cache_dir.mkdir(parents=True)
        storage.state_path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ParseError):
            storage.load()

    def test_store_failure_is_typed(self, storage, tmp_path):
        storage.load()
        storage.state_path.mkdir()  # a directory cannot be written as a file
        with pytest.raises(StorageIOError):
            storage.store(Engine())


# ---------------------------------------------------------------------------
# Locking
# ---------------------------------------------------------------------------

class TestLock:
    def test_load_creates_lock_file(self, storage):
        storage.load()
        assert storage.locked
        assert storage.lock_path.read_text(encoding="utf-8") == LOCK_PAYLOAD

    def test_second_load_same_handle_is_fine(self, storage):
        storage.load()
        storage.load()
        assert storage.locked

    def test_second_handle_is_locked_out(self, tmp_path, storage):
        storage.load()
        with pytest.raises(LockedError, match="lock file exists and is valid"):
            Storage(tmp_path).load()

    def test_unlock_lets_next_handle_in(self, tmp_path, storage):
        storage.load()
        storage.unlock()
        assert not storage.lock_path.exists()
        with Storage(tmp_path) as third:
            third.load()
            assert third.locked

    def test_unlock_is_idempotent(self, storage):
        storage.load()
        storage.unlock()
        storage.unlock()
        assert not storage.locked

    def test_dropping_handle_releases_lock(self, tmp_path):
        first = Storage(tmp_path)
        first.load()
        lock_path = first.lock_path
        del first
        gc.collect()
        assert not lock_path.exists()
        with Storage(tmp_path) as second:
            second.load()

    def test_context_manager_releases_lock(self, tmp_path):
        with Storage(tmp_path) as s:
            s.load()
            lock_path = s.lock_path
        assert not lock_path.exists()

    def test_stale_lock_is_taken_over(self, tmp_path):
        s = Storage(tmp_path, stale_after=60)
        s.cache_dir.mkdir(parents=True)
        s.lock_path.write_text(LOCK_PAYLOAD, encoding="utf-8")
        old = time.time() - 120
        os.utime(s.lock_path, (old, old))

        s.load()
        assert s.locked
        assert time.time() - s.lock_path.stat().st_mtime < 60
        s.close()

    def test_fresh_foreign_lock_rejected(self, tmp_path):
        s = Storage(tmp_path, stale_after=60)
        s.cache_dir.mkdir(parents=True)
        s.lock_path.write_text(LOCK_PAYLOAD, encoding="utf-8")
        with pytest.raises(LockedError):
            s.load()
        assert not s.locked

    def test_clear_lock_file_removes_foreign_lock(self, tmp_path, storage):
        other = Storage(tmp_path)
        other.load()
        storage.clear_lock_file()
        assert not storage.lock_path.exists()
        storage.load()
        assert storage.locked
        other.close()

    def test_clear_lock_file_without_lock(self, storage):
        storage.clear_lock_file()
        assert not storage.lock_path.exists()


# ---------------------------------------------------------------------------
# Concurrent writes
# ---------------------------------------------------------------------------

def test_concurrent_stores_never_interleave(tmp_path):
    class Snapshot:
        def __init__(self, name: str) -> None:
            self.name = name

        def to_str(self) -> str:
            engine = Engine()
            for i in range(200):
                engine.create_root(f"{self.name}-{i}")
            return engine.to_str()

    with Storage(tmp_path) as storage:
        storage.load()
        threads = [
            threading.Thread(target=storage.store, args=(Snapshot(name),))
            for name in ("a", "b", "c", "d")
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        roots = Engine.from_str(storage.state_path.read_text(encoding="utf-8")).get_roots()
        assert len(roots) == 200
        assert len({name.split("-")[0] for name in roots}) == 1


def test_deeply_nested_snapshot_fails_typed(tmp_path):
    depth = 100_000
    with Storage(tmp_path) as storage:
        storage.cache_dir.mkdir(parents=True)
        storage.state_path.write_text(
            '{"alice": '
            + '{"type": "section", "x": ' * depth
            + '{"type": "section"}'
            + "}" * depth
            + "}",
            encoding="utf-8",
        )
        with pytest.raises(ParseError):
            storage.load()
