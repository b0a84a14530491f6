"""Unit tests for the storage adapters and the persisted snapshot layout."""

import json
import sqlite3

import pytest

from jsongraph.core.state import GraphRepository
from jsongraph.core.storage import (
    JsonFileStorage,
    MemoryStorage,
    SQLiteStorage,
    create_storage,
)
from jsongraph.core.storage.snapshot import dump_state, load_state, load_states

DOC = {"users": [{"name": "ada", "email": "ada@example.com"}], "version": "1.2.3"}


def _expanded_state(document=DOC, document_id="doc-1"):
    repository = GraphRepository()
    repository.open_document(document_id, document, display_name="people")
    repository.expand_path(document_id, "root.users[0].email")
    return repository.get_state(document_id)


@pytest.fixture(params=["memory", "sqlite", "json"])
def storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "sqlite":
        return SQLiteStorage(tmp_path / "graphs.db")
    return JsonFileStorage(tmp_path / "json-states.json")


class TestRoundTrip:
    def test_save_and_load(self, storage):
        state = _expanded_state()
        storage.save_state(state)

        restored = storage.load_state("doc-1")
        assert restored is not None
        assert [n.id for n in restored.nodes] == [n.id for n in state.nodes]
        assert restored.edges == state.edges
        assert restored.nodes == state.nodes
        assert restored.display_name == "people"
        assert restored.raw_document == DOC

    def test_independent_of_key_order(self, storage):
        reordered = {"version": "1.2.3", "users": [{"email": "ada@example.com", "name": "ada"}]}
        storage.save_state(_expanded_state(DOC, "a"))
        storage.save_state(_expanded_state(reordered, "b"))

        a = storage.load_state("a")
        b = storage.load_state("b")
        assert {n.id for n in a.nodes} == {n.id for n in b.nodes}
        assert {e.id for e in a.edges} == {e.id for e in b.edges}
        assert a.raw_document == b.raw_document

    def test_save_replaces(self, storage):
        state = _expanded_state()
        storage.save_state(state.model_copy(update={"nodes": state.nodes[:1], "edges": ()}))
        storage.save_state(state)
        assert storage.load_state("doc-1").node_count == state.node_count
        assert len(storage.load_all_states()) == 1

    def test_delete_and_clear(self, storage):
        storage.save_states_batch([_expanded_state(DOC, "a"), _expanded_state(DOC, "b")])
        assert storage.delete_state("a") is True
        assert storage.delete_state("a") is False
        assert [s.document_id for s in storage.load_all_states()] == ["b"]

        storage.clear()
        assert storage.load_all_states() == []

    def test_missing_document(self, storage):
        assert storage.load_state("nope") is None

    def test_stats(self, storage):
        storage.save_state(_expanded_state())
        stats = storage.get_stats()
        assert stats["total_nodes"] == 4
        assert stats["total_edges"] == 3


class TestSnapshotLayout:
    def test_camel_case_entry(self):
        entry = dump_state(_expanded_state())

        assert set(entry) == {"documentId", "displayName", "rawDocument", "nodes", "edges"}
        node = entry["nodes"][1]
        assert set(node) == {"id", "kind", "payload", "parentPath"}
        assert node["parentPath"] == "root"
        descriptor = node["payload"][0]
        assert {"key", "path", "parentPath", "semanticType", "isLeaf", "childCount"} <= set(descriptor)
        assert entry["edges"][0] == {
            "id": "edge-root-root.users",
            "source": "root",
            "target": "root.users",
        }

    def test_entry_without_parent_paths(self):
        entry = dump_state(_expanded_state())
        for node in entry["nodes"]:
            del node["parentPath"]
        restored = load_state(entry)
        assert restored.get_node("root.users[0]").parent_path == "root.users"
        assert restored.get_node("root").parent_path is None

    def test_broken_tree_is_rejected(self):
        entry = dump_state(_expanded_state())
        entry["edges"] = entry["edges"][:-1]
        with pytest.raises(ValueError):
            load_state(entry)

    def test_corrupt_entries_are_skipped(self):
        good = dump_state(_expanded_state())
        states = load_states([good, {"documentId": "x"}, "garbage", {"nodes": 5}])
        assert [s.document_id for s in states] == ["doc-1"]

    def test_non_list_payload(self):
        assert load_states({"documentId": "x"}) == []


class TestJsonFileStorage:
    def test_file_is_a_json_array(self, tmp_path):
        path = tmp_path / "state.json"
        JsonFileStorage(path).save_state(_expanded_state())
        data = json.loads(path.read_text())
        assert isinstance(data, list)
        assert data[0]["documentId"] == "doc-1"

    def test_corrupt_file_falls_back_to_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{ this is not json")
        assert JsonFileStorage(path).load_all_states() == []

    def test_missing_file(self, tmp_path):
        assert JsonFileStorage(tmp_path / "absent.json").load_all_states() == []


class TestSQLiteStorage:
    def test_schema_version(self, tmp_path):
        assert SQLiteStorage(tmp_path / "g.db").get_schema_version() == 2

    def test_reopen_keeps_data(self, tmp_path):
        db = tmp_path / "g.db"
        SQLiteStorage(db).save_state(_expanded_state())
        assert SQLiteStorage(db).load_state("doc-1").node_count == 4

    def test_corrupt_rows_are_skipped(self, tmp_path):
        db = tmp_path / "g.db"
        storage = SQLiteStorage(db)
        storage.save_states_batch([_expanded_state(DOC, "a"), _expanded_state(DOC, "b")])

        conn = sqlite3.connect(db)
        conn.execute("UPDATE nodes SET payload = 'not json' WHERE document_id = 'a'")
        conn.commit()
        conn.close()

        assert [s.document_id for s in storage.load_all_states()] == ["b"]
        assert storage.load_state("a") is None

    def test_query_descendants(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "g.db")
        storage.save_state(_expanded_state())
        assert set(storage.query_descendants("doc-1", "root.users")) == {
            "root.users[0]",
            "root.users[0].email",
        }
        assert storage.query_descendants("doc-1", "root", max_depth=1) == ["root.users"]


class TestCreateStorage:
    def test_backends(self, tmp_path):
        assert isinstance(create_storage("memory"), MemoryStorage)
        assert isinstance(create_storage("sqlite", tmp_path / "a.db"), SQLiteStorage)
        assert isinstance(create_storage("json", tmp_path / "a.json"), JsonFileStorage)

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValueError):
            create_storage("redis", tmp_path / "x")

    def test_path_required(self):
        with pytest.raises(ValueError):
            create_storage("sqlite")
