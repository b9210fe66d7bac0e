"""
Tests for tracking stores. SqlStore uses a temporary SQLite file.
"""

from __future__ import annotations

import pytest

from tfuel_rewards.tracking.store import MemoryStore, SqlStore, sqlite_url
from tfuel_rewards.tracking.tracker import IncrementalTracker

from conftest import ADDR_A


@pytest.fixture
def sql_store(tmp_path):
    store = SqlStore(sqlite_url(str(tmp_path / "tracking.db")))
    yield store
    store.dispose()


def test_memory_store_listeners():
    store = MemoryStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.set("a", "1")
    store.delete("a")
    unsubscribe()
    store.set("b", "2")

    assert seen == ["a", "a"]
    assert store.get("a") is None
    assert store.get("b") == "2"


def test_sql_store_set_get_delete(sql_store):
    assert sql_store.get("missing") is None
    sql_store.set("k", "v1")
    sql_store.set("k", "v2")
    assert sql_store.get("k") == "v2"
    sql_store.delete("k")
    assert sql_store.get("k") is None
    sql_store.delete("k")


def test_sql_store_json_and_corruption(sql_store):
    sql_store.set_json("obj", {"a": [1, 2]})
    assert sql_store.get_json("obj") == {"a": [1, 2]}
    sql_store.set("obj", "{broken")
    assert sql_store.get_json("obj") is None


def test_sql_store_is_shared_across_instances(tmp_path):
    """A second store on the same file reads the first one's writes."""
    url = sqlite_url(str(tmp_path / "shared.db"))
    writer, reader = SqlStore(url), SqlStore(url)
    try:
        IncrementalTracker(writer, clock=lambda: 1_700_000_000_000).start(
            [{"address": ADDR_A, "tfuelBalance": 10.0}]
        )
        other = IncrementalTracker(reader)
        assert other.is_running
        assert other.state.baselines == {ADDR_A: 10.0}
    finally:
        writer.dispose()
        reader.dispose()
