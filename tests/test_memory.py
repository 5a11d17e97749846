"""Tests for the SQL memory store and memory entries."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from pathlib import Path
from sqlalchemy import inspect

from stepflow.memory import Memory, MemoryBackend, MemoryStore


@pytest.fixture
def store(tmp_path: Path) -> MemoryStore:
    s = MemoryStore(f"sqlite:///{tmp_path / 'memory.db'}")
    s.create_schema()
    yield s
    s.close()


class TestSchema:
    def test_creates_states_table(self, store: MemoryStore):
        tables = inspect(store.engine).get_table_names()
        assert "states" in tables

    def test_unique_constraint(self, store: MemoryStore):
        uniques = inspect(store.engine).get_unique_constraints("states")
        cols = [set(u["column_names"]) for u in uniques]
        assert {"user_id", "package_id", "key"} in cols

    def test_create_schema_idempotent(self, store: MemoryStore):
        store.create_schema()
        store.create_schema()
        assert "states" in inspect(store.engine).get_table_names()

    def test_creates_sqlite_parent_dir(self, tmp_path: Path):
        db = tmp_path / "nested" / "dir" / "memory.db"
        s = MemoryStore(f"sqlite:///{db}")
        s.create_schema()
        assert db.exists()
        s.close()

    def test_expands_home_in_sqlite_url(self, tmp_path: Path, monkeypatch):
        home = tmp_path / "home"
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.chdir(tmp_path)
        s = MemoryStore("sqlite:///~/.stepflow/memory.db")
        s.create_schema()
        s.put("shopping", "u1", "budget", b"2500")
        assert (home / ".stepflow" / "memory.db").exists()
        assert not (tmp_path / "~").exists()
        assert s.engine.url.database == str(home / ".stepflow" / "memory.db")
        s.close()

    def test_in_memory_shared_across_threads(self):
        s = MemoryStore("sqlite://")
        s.create_schema()
        s.put("shopping", "u1", "budget", b"2500")
        with ThreadPoolExecutor(max_workers=1) as pool:
            assert pool.submit(s.get, "shopping", "u1", "budget").result() == b"2500"
            pool.submit(s.put, "shopping", "u1", "color", b'"red"').result()
        assert s.get("shopping", "u1", "color") == b'"red"'
        s.close()

    def test_requires_url_or_engine(self):
        with pytest.raises(ValueError):
            MemoryStore()

    def test_satisfies_backend_protocol(self, store: MemoryStore):
        assert isinstance(store, MemoryBackend)


class TestKeyedAccess:
    def test_get_missing(self, store: MemoryStore):
        assert store.get("shopping", "u1", "budget") is None

    def test_put_then_get(self, store: MemoryStore):
        store.put("shopping", "u1", "budget", b"2500")
        assert store.get("shopping", "u1", "budget") == b"2500"

    def test_upsert_replaces(self, store: MemoryStore):
        store.put("shopping", "u1", "color", b'"red"')
        store.put("shopping", "u1", "color", b'"blue"')
        assert store.get("shopping", "u1", "color") == b'"blue"'

    def test_keys_are_scoped(self, store: MemoryStore):
        store.put("shopping", "u1", "color", b'"red"')
        assert store.get("shopping", "u2", "color") is None
        assert store.get("travel", "u1", "color") is None

    def test_delete(self, store: MemoryStore):
        store.put("shopping", "u1", "color", b'"red"')
        store.delete("shopping", "u1", "color")
        assert store.get("shopping", "u1", "color") is None

    def test_delete_missing_is_noop(self, store: MemoryStore):
        store.delete("shopping", "u1", "nope")

    def test_portable_upsert(self, store: MemoryStore, monkeypatch):
        # Pretend the dialect has no ON CONFLICT support
        monkeypatch.setattr("stepflow.memory.store._DIALECT_INSERTS", {})
        store.put("shopping", "u1", "address", b'"1 Main St"')
        store.put("shopping", "u1", "address", b'"2 Side St"')
        assert store.get("shopping", "u1", "address") == b'"2 Side St"'

    def test_get_without_schema_raises(self, tmp_path: Path):
        s = MemoryStore(f"sqlite:///{tmp_path / 'empty.db'}")
        with pytest.raises(Exception):
            s.get("shopping", "u1", "budget")
        s.close()


class TestMemoryEntry:
    def test_empty_is_falsy(self):
        assert not Memory(key="k")
        assert Memory(key="k").decode("dflt") == "dflt"

    def test_decode(self):
        mem = Memory(key="k", value=json.dumps({"a": 1}).encode())
        assert mem
        assert mem.decode() == {"a": 1}

    def test_typed_accessors(self):
        assert Memory(key="k", value=b'"blue"').as_str() == "blue"
        assert Memory(key="k", value=b"2500").as_int() == 2500
        assert Memory(key="k", value=b"true").as_bool() is True

    def test_wrong_type_gives_zero_value(self):
        assert Memory(key="k", value=b"42").as_str() == ""
        assert Memory(key="k", value=b'"x"').as_int() == 0
        assert Memory(key="k", value=b"true").as_int() == 0
        assert Memory(key="k", value=b"1").as_bool() is False

    def test_malformed_logs_error(self, caplog):
        with caplog.at_level(logging.ERROR, logger="stepflow.memory.entry"):
            assert Memory(key="k", value=b"{not json").decode() is None
        assert "decoding memory" in caplog.text
